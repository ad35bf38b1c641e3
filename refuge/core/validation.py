"""
Input validation for refuge.

Locations and radii are rejected here, before any computation.
"""

import math
from typing import Any
from .errors import ValidationError
from .models import Location
from refuge.common.geo import validate_coordinates

def validate_location(lat: Any, lon: Any) -> Location:
    """좌표를 검증하고 Location을 반환합니다. 잘못된 값이면 ValidationError."""
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        raise ValidationError(f"lat and lon must be numbers (got lat={lat!r}, lon={lon!r})")

    if not validate_coordinates(lat, lon):
        raise ValidationError(f"coordinates out of range: lat={lat}, lon={lon}")

    return Location(lat=lat, lon=lon)

def validate_radius(radius_km: Any, max_radius_km: float) -> float:
    """반경을 검증합니다. 0 이하, NaN, 최대값 초과는 ValidationError."""
    try:
        radius_km = float(radius_km)
    except (TypeError, ValueError):
        raise ValidationError(f"radius_km must be a number (got {radius_km!r})")

    if math.isnan(radius_km) or radius_km <= 0:
        raise ValidationError(f"radius_km must be positive (got {radius_km})")
    if radius_km > max_radius_km:
        raise ValidationError(f"radius_km {radius_km} exceeds maximum {max_radius_km}")

    return radius_km
