"""Streamed three-role debate orchestration service."""

__version__ = "0.3.0"
