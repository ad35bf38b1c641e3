"""
Hazard/resource overview aggregation for refuge.

This module pulls raw records from the hazard and resource sources,
computes distances from the observer, drops anything outside the
radius, classifies what remains and returns both lists ordered by
distance. A failing source degrades the result instead of failing it.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple, TypeVar
from .models import HazardRecord, Location, OverviewResult, RawRecord, ResourceRecord, ResourceSection
from .normalize import to_hazard, to_resource
from .validation import validate_radius
from refuge.observability import metrics
from refuge.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from refuge.ports.sources import HazardSourcePort, ResourceSourcePort

log = get_logger("refuge.overview")

T = TypeVar("T", HazardRecord, ResourceRecord)

def id_sort_key(record_id: str) -> Tuple[int, int, str]:
    """숫자 ID는 숫자 순, 나머지는 문자열 순 (숫자가 먼저)."""
    if record_id.isdigit():
        return (0, int(record_id), "")
    return (1, 0, record_id)

def rank(records: Sequence[T], radius_km: float, limit: Optional[int] = None) -> List[T]:
    """
    반경 밖 레코드를 제거하고 (거리, id) 오름차순으로 정렬합니다.

    Args:
        records: distance_km이 계산된 레코드
        radius_km: 최대 거리
        limit: 최대 개수 (None이면 제한 없음)

    Returns:
        정렬된 레코드 목록
    """
    kept = [r for r in records if r.distance_km <= radius_km]
    kept.sort(key=lambda r: (r.distance_km, id_sort_key(r.id)))
    if limit is not None:
        kept = kept[:limit]
    return kept

class OverviewAggregator:
    """주변 위험/자원 종합기"""

    def __init__(self,
                 hazard_source: HazardSourcePort,
                 resource_source: ResourceSourcePort,
                 *,
                 max_radius_km: float = 500.0,
                 hazard_limit: Optional[int] = 50,
                 resource_limit: Optional[int] = 100):
        """
        초기화합니다.

        Args:
            hazard_source: 위험 데이터 소스
            resource_source: 대피소/자원 소스
            max_radius_km: 허용 최대 반경
            hazard_limit: 반환할 최대 위험 개수
            resource_limit: 반환할 최대 자원 개수
        """
        self.hazard_source = hazard_source
        self.resource_source = resource_source
        self.max_radius_km = max_radius_km
        self.hazard_limit = hazard_limit
        self.resource_limit = resource_limit

    async def get_overview(self, observer: Location, radius_km: float) -> OverviewResult:
        """
        관찰자 주변의 위험과 자원을 종합합니다.

        Args:
            observer: 관찰자 위치
            radius_km: 검색 반경 (km)

        Returns:
            거리순으로 정렬된 OverviewResult

        Raises:
            ValidationError: 반경이 잘못된 경우
        """
        radius_km = validate_radius(radius_km, self.max_radius_km)

        with metrics.overview_seconds.time():
            (raw_hazards, hazard_ok), (raw_resources, resource_ok) = await asyncio.gather(
                self._fetch(self.hazard_source, "fetch_hazards", observer, radius_km),
                self._fetch(self.resource_source, "fetch_resources", observer, radius_km),
            )

            hazards = rank(self._convert(raw_hazards, to_hazard, observer),
                           radius_km, self.hazard_limit)
            resources = rank(self._convert(raw_resources, to_resource, observer),
                             radius_km, self.resource_limit)

        unavailable = []
        if not hazard_ok:
            unavailable.append(self._name(self.hazard_source))
        if not resource_ok:
            unavailable.append(self._name(self.resource_source))

        metrics.overview_requests.inc()
        metrics.overview_items.labels(section="hazards").inc(len(hazards))
        metrics.overview_items.labels(section="resources").inc(len(resources))

        log.info(f"overview 생성 완료 lat:{observer.lat} lon:{observer.lon} radius:{radius_km}km "
                 f"hazards:{len(hazards)} resources:{len(resources)} unavailable:{unavailable}")

        return OverviewResult(
            hazards=hazards,
            resources=ResourceSection(items=resources),
            unavailable=unavailable,
        )

    @staticmethod
    def _name(source: Any) -> str:
        return getattr(source, "name", type(source).__name__)

    async def _fetch(self, source: Any, method: str,
                     observer: Location, radius_km: float) -> Tuple[List[RawRecord], bool]:
        """소스를 조회합니다. 실패하면 빈 목록과 False를 반환합니다."""
        name = self._name(source)
        try:
            records = await getattr(source, method)(observer, radius_km)
            log.debug(f"소스 조회 완료 source:{name} count:{len(records)}")
            return list(records), True
        except Exception as e:
            metrics.source_failures.labels(source=name).inc()
            log.warning(f"소스 조회 실패, 부분 결과로 진행 source:{name} error:{e}")
            return [], False

    @staticmethod
    def _convert(raws: Sequence[RawRecord],
                 convert: Callable[[RawRecord, Location], Optional[T]],
                 observer: Location) -> List[T]:
        records = []
        for raw in raws:
            record = convert(raw, observer)
            if record is not None:
                records.append(record)
        return records
