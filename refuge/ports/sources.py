"""
Source port interfaces.

This module defines the protocols for hazard, resource and alert feeds.
Sources may over-return; radius filtering happens in the core.
"""

from typing import Any, Dict, List, Optional, Protocol
from refuge.core.models import Location, RawRecord

class HazardSourcePort(Protocol):
    """위험 데이터 소스 포트 인터페이스"""

    name: str

    async def fetch_hazards(self, observer: Location, radius_km: float) -> List[RawRecord]:
        """
        원시 위험 레코드를 조회합니다.

        Args:
            observer: 관찰자 위치 (힌트, 사전 필터링은 보장되지 않음)
            radius_km: 요청 반경 (힌트)

        Returns:
            원시 레코드 목록

        Raises:
            SourceUnavailable: 소스 조회 실패
        """
        ...

class ResourceSourcePort(Protocol):
    """대피소/구호 자원 소스 포트 인터페이스"""

    name: str

    async def fetch_resources(self, observer: Location, radius_km: float) -> List[RawRecord]:
        """
        원시 자원 레코드를 조회합니다.

        Raises:
            SourceUnavailable: 소스 조회 실패
        """
        ...

class AlertSourcePort(Protocol):
    """경보 소스 포트 인터페이스"""

    async def fetch_alerts(self, limit: Optional[int] = None,
                           observer: Optional[Location] = None,
                           radius_km: Optional[float] = None) -> List[Dict[str, Any]]:
        """
        위험 정보가 결합된 경보 행을 최신순으로 조회합니다.

        observer/radius_km는 사전 필터링 힌트이며 결과가 반경을 넘을 수 있습니다.
        limit가 None이면 개수를 제한하지 않습니다.

        각 행은 id, message, created_at, hazard_id, hazard_type,
        hazard_severity, hazard_lat, hazard_lon, hazard_title 키를 가집니다.
        """
        ...
