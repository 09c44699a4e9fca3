"""Database management module."""

from .database import DatabaseManager, HistoryMessage

__all__ = ["DatabaseManager", "HistoryMessage"]
