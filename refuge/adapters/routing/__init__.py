from .osrm import OSRMRouteProvider

__all__ = ["OSRMRouteProvider"]
