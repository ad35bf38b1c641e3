"""
Feed adapters for refuge: upstream hazard feeds and shelter imports.
"""

from .usgs import USGSHazardSource
from .shelter_file import load_shelters

__all__ = ["USGSHazardSource", "load_shelters"]
