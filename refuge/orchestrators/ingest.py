"""
Hazard feed ingestion for refuge.

This module pulls an upstream hazard feed on an interval, stores the
records in the hazard table and raises an alert for every new hazard
at or above the configured severity.
"""

import asyncio
import aiosqlite
from typing import Optional
from refuge.adapters.storage.sqlite_feeds import SQLiteFeedStore
from refuge.core.errors import SourceUnavailable, ValidationError
from refuge.core.models import Location, RawRecord
from refuge.core.normalize import parse_hazard_type
from refuge.core.severity import SEVERITY_ORDER, classify_magnitude
from refuge.ports.sources import HazardSourcePort
from refuge.observability import metrics
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.ingest")

# 피드는 위치와 무관하게 전체를 반환
FEED_ORIGIN = Location(lat=0.0, lon=0.0)
FEED_RADIUS_KM = 20038.0

def alert_message(raw: RawRecord) -> str:
    """경보 문구를 만듭니다."""
    kind = parse_hazard_type(raw.type)
    mag = raw.attributes.get("mag")
    place = raw.attributes.get("place")
    head = f"M{float(mag):.1f} {kind}" if mag is not None else kind.capitalize()
    return f"{head} near {place}" if place else f"{head} detected"

class FeedIngestor:
    """위험 피드 주기 적재기"""

    def __init__(self,
                 source: HazardSourcePort,
                 store: SQLiteFeedStore,
                 *,
                 alert_min_severity: str = "high",
                 interval_sec: float = 300.0):
        """
        초기화합니다.

        Args:
            source: 상위 위험 피드
            store: 위험/경보 저장소
            alert_min_severity: 경보를 만들 최소 위험도
            interval_sec: 적재 주기 (초)
        """
        if alert_min_severity not in SEVERITY_ORDER:
            raise ValidationError(f"unknown alert_min_severity {alert_min_severity!r}")
        self.source = source
        self.store = store
        self.alert_min_severity = alert_min_severity
        self.interval_sec = interval_sec

    async def run_once(self) -> int:
        """
        피드를 한 번 적재합니다.

        Returns:
            생성된 경보 수
        """
        records = await self.source.fetch_hazards(FEED_ORIGIN, FEED_RADIUS_KM)
        created = await self.store.upsert_hazards(records)

        alerts = 0
        threshold = SEVERITY_ORDER[self.alert_min_severity]
        for raw in records:
            hazard_id = created.get(raw.source_id or raw.id)
            if hazard_id is None:
                continue
            severity = classify_magnitude(raw.attributes.get("mag"))
            if SEVERITY_ORDER[severity] >= threshold:
                await self.store.insert_alert(hazard_id, alert_message(raw))
                alerts += 1

        metrics.hazards_ingested.inc(len(created))
        metrics.alerts_created.inc(alerts)
        log.info(f"피드 적재 완료 records:{len(records)} new:{len(created)} alerts:{alerts}")
        return alerts

    async def start(self, stop: Optional[asyncio.Event] = None) -> None:
        """stop 이벤트가 설정될 때까지 주기적으로 적재합니다."""
        name = getattr(self.source, "name", "feed")
        while stop is None or not stop.is_set():
            try:
                await self.run_once()
            except SourceUnavailable as e:
                metrics.source_failures.labels(source=name).inc()
                log.warning(f"피드 적재 실패, 다음 주기에 재시도 error:{e}")
            except aiosqlite.Error as e:
                log.error(f"피드 저장 실패, 다음 주기에 재시도 error:{e}")
            except Exception as e:
                log.exception(f"피드 적재 오류, 다음 주기에 재시도 error:{e}")
            if stop is None:
                await asyncio.sleep(self.interval_sec)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_sec)
            except asyncio.TimeoutError:
                pass
