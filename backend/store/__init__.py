"""
Storage Layer
Precomputed history tables.
"""

from .history_store import HistoryStore, TABLE_FILES

__all__ = ["HistoryStore", "TABLE_FILES"]
