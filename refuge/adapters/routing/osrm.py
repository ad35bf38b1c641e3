"""
OSRM routing client for refuge.

This module requests route alternatives from an OSRM server
with full GeoJSON geometry and turn-by-turn steps.
"""

import asyncio
import aiohttp
from typing import Any, Dict, List
from refuge.common.retry import retry_with_backoff
from refuge.core.errors import RouteUnavailable
from refuge.core.models import Location
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.osrm")

class OSRMRouteProvider:
    """OSRM 경로 제공자"""

    def __init__(self, base_url: str, profile: str = "driving", timeout: int = 15,
                 max_retries: int = 2):
        """
        초기화합니다.

        Args:
            base_url: OSRM 서버 기본 URL
            profile: OSRM 프로필 (공개 서버는 driving만 제공)
            timeout: 요청 타임아웃 (초)
            max_retries: 실패 시 재시도 횟수
        """
        self.base_url = base_url.rstrip('/')
        self.profile = profile
        self.timeout = timeout
        self.max_retries = max_retries

    def build_url(self, origin: Location, destination: Location) -> str:
        # OSRM 좌표 순서는 경도,위도
        return (f"{self.base_url}/route/v1/{self.profile}/"
                f"{origin.lon},{origin.lat};{destination.lon},{destination.lat}")

    async def fetch_routes(self, origin: Location, destination: Location,
                           alternatives: int = 3) -> List[Dict[str, Any]]:
        """
        대안 경로들을 조회합니다.

        Raises:
            RouteUnavailable: 네트워크 오류 또는 OSRM 오류 코드
        """
        url = self.build_url(origin, destination)
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
            "alternatives": str(alternatives) if alternatives > 1 else "false",
        }
        log.info(f"OSRM 경로 요청 url:{url}")

        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async def _request():
                    async with session.get(url, params=params) as response:
                        return await response.json(content_type=None)

                data = await retry_with_backoff(
                    _request, max_retries=self.max_retries,
                    retry_on=(aiohttp.ClientError, asyncio.TimeoutError)
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error(f"OSRM 요청 실패 error:{e}")
            raise RouteUnavailable(f"routing provider unreachable: {e}")

        if data.get("code") != "Ok":
            raise RouteUnavailable(data.get("message") or "Routing failed")

        return list(data.get("routes") or [])
