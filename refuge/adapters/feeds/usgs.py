"""
USGS earthquake feed client for refuge.

This module fetches the USGS GeoJSON summary feed and maps each
feature to a raw hazard record (source tag ``usgs``).
"""

import asyncio
import aiohttp
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from refuge.common.retry import retry_with_backoff
from refuge.core.errors import SourceUnavailable
from refuge.core.models import Location, RawRecord
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.usgs")

SOURCE_TAG = "usgs"

def feature_to_record(feature: Dict[str, Any]) -> Optional[RawRecord]:
    """GeoJSON feature를 원시 위험 레코드로 변환합니다. 좌표가 없으면 None."""
    props = feature.get("properties") or {}
    coords = (feature.get("geometry") or {}).get("coordinates") or []
    if len(coords) < 2 or not feature.get("id"):
        return None

    attributes: Dict[str, Any] = {
        "mag": props.get("mag"),
        "place": props.get("place"),
        "title": props.get("title"),
    }
    if len(coords) > 2:
        attributes["depth_km"] = coords[2]
    if props.get("time") is not None:
        # USGS time은 epoch 밀리초
        attributes["time"] = datetime.fromtimestamp(props["time"] / 1000, tz=timezone.utc).isoformat()

    return RawRecord(
        id=str(feature["id"]),
        lat=float(coords[1]),
        lon=float(coords[0]),
        source=SOURCE_TAG,
        source_id=str(feature["id"]),
        type=props.get("type") or "earthquake",
        attributes=attributes,
    )

class USGSHazardSource:
    """USGS GeoJSON 피드 기반 위험 소스"""

    name = SOURCE_TAG

    def __init__(self, url: str, timeout: int = 10, max_retries: int = 2):
        """
        초기화합니다.

        Args:
            url: GeoJSON 피드 URL
            timeout: 요청 타임아웃 (초)
            max_retries: 실패 시 재시도 횟수
        """
        self.url = url
        self.timeout = timeout
        self.max_retries = max_retries

    async def _get_json(self) -> Dict[str, Any]:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async def _request():
                async with session.get(self.url) as response:
                    response.raise_for_status()
                    return await response.json(content_type=None)

            return await retry_with_backoff(
                _request, max_retries=self.max_retries,
                retry_on=(aiohttp.ClientError, asyncio.TimeoutError)
            )

    async def fetch_hazards(self, observer: Location, radius_km: float) -> List[RawRecord]:
        """피드 전체를 반환합니다. 반경 필터링은 호출 측 책임입니다."""
        try:
            data = await self._get_json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.error(f"USGS 피드 조회 실패 url:{self.url} error:{e}")
            raise SourceUnavailable(self.name, e)

        records = []
        for feature in data.get("features") or []:
            record = feature_to_record(feature)
            if record is not None:
                records.append(record)

        log.info(f"USGS 피드 조회 완료 count:{len(records)}")
        return records
