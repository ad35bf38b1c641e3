"""
Port interfaces for refuge hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .sources import HazardSourcePort, ResourceSourcePort, AlertSourcePort
from .community_store import CommunityStorePort
from .route_provider import RouteProviderPort

__all__ = ["HazardSourcePort", "ResourceSourcePort", "AlertSourcePort",
           "CommunityStorePort", "RouteProviderPort"]
