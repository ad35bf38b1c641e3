"""
Orchestrators for refuge.

This module contains the background workers that coordinate
upstream feeds and the local stores.
"""
from .ingest import FeedIngestor

__all__ = ["FeedIngestor"]
