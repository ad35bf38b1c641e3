"""
Route provider port interface.

This module defines the protocol for the external routing provider.
"""

from typing import Any, Dict, List, Protocol
from refuge.core.models import Location

class RouteProviderPort(Protocol):
    """경로 제공자 포트 인터페이스"""

    async def fetch_routes(self, origin: Location, destination: Location,
                           alternatives: int = 3) -> List[Dict[str, Any]]:
        """
        대안 경로들을 조회합니다.

        Returns:
            OSRM 형식 route 객체 목록 (distance, duration, geometry, legs)

        Raises:
            RouteUnavailable: 제공자 오류
        """
        ...
