"""
Adapters for refuge hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import (
    SQLiteCommunityStore, SQLiteFeedStore, SQLiteHazardSource,
    SQLiteShelterSource, SQLiteAlertSource
)
from .feeds import USGSHazardSource, load_shelters
from .routing import OSRMRouteProvider

__all__ = ["SQLiteCommunityStore", "SQLiteFeedStore", "SQLiteHazardSource",
           "SQLiteShelterSource", "SQLiteAlertSource", "USGSHazardSource",
           "load_shelters", "OSRMRouteProvider"]
