from .schema_manager import SCHEMA_FILES, SCHEMA_VERSION, SchemaManager

__all__ = ["SCHEMA_FILES", "SCHEMA_VERSION", "SchemaManager"]
