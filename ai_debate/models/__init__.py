"""Model providers and backend binding."""

from .manager import BackendResolver, split_model_id

__all__ = ["BackendResolver", "split_model_id"]
