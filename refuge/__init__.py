"""
refuge: hazard awareness, nearby resources and neighbor aid.
"""

__version__ = "0.1.0"
