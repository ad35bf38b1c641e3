"""
Storage adapters for refuge hexagonal architecture.

This module contains SQLite-based stores for the community graph
and for ingested hazards, shelters and alerts.
"""

from .sqlite_community import SQLiteCommunityStore
from .sqlite_feeds import SQLiteFeedStore, SQLiteHazardSource, SQLiteShelterSource, SQLiteAlertSource

__all__ = ["SQLiteCommunityStore", "SQLiteFeedStore", "SQLiteHazardSource",
           "SQLiteShelterSource", "SQLiteAlertSource"]
