"""
Core domain models and pure functions for refuge.

This module contains the domain models and business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    Location, RawRecord, HazardRecord, ResourceRecord, OverviewResult,
    SafetyStatus, AlertEntry, CommunityUser, NeighborEdge, CommunityResource,
    RouteSummary, Severity, SafetyLevel
)
from .severity import classify_magnitude, classify_personal_risk
from .categorize import categorize
from .overview import OverviewAggregator
from .safety import SafetyStatusEngine, describe_status
from .alerts import AlertFeed
from .community import CommunityGraph
from .route import RouteSummaryAdapter

__all__ = [
    "Location", "RawRecord", "HazardRecord", "ResourceRecord", "OverviewResult",
    "SafetyStatus", "AlertEntry", "CommunityUser", "NeighborEdge", "CommunityResource",
    "RouteSummary", "Severity", "SafetyLevel",
    "classify_magnitude", "classify_personal_risk", "categorize",
    "OverviewAggregator", "SafetyStatusEngine", "describe_status",
    "AlertFeed", "CommunityGraph", "RouteSummaryAdapter",
]
