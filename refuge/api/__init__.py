"""
HTTP API for refuge.
"""

from .routes import Services, build_router

__all__ = ["Services", "build_router"]
