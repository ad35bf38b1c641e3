"""
SQLite-backed hazard, shelter and alert sources for refuge.

Ingested hazards, imported shelters and hazard-linked alerts live in one
SQLite file. Queries pre-filter by a latitude band only; exact radius
filtering happens in the core, so these sources may over-return.
"""

import json
import aiosqlite
from typing import Any, Dict, Iterable, List, Optional
from refuge.core.errors import SourceUnavailable
from refuge.core.models import Location, RawRecord
from refuge.observability.logging_setup import get_logger
from .connection import connect, utc_now

log = get_logger("refuge.feeds")

# 위도 1도 ≈ 111km
KM_PER_DEGREE = 111.0

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS hazard (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL DEFAULT 'other',
    source TEXT NOT NULL,
    source_event_id TEXT NOT NULL,
    lat REAL,
    lon REAL,
    occurred_at TEXT,
    attributes TEXT NOT NULL DEFAULT '{}',
    UNIQUE(source, source_event_id)
);
CREATE TABLE IF NOT EXISTS shelter (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    type TEXT,
    address TEXT,
    lat REAL NOT NULL,
    lon REAL NOT NULL,
    capacity INTEGER,
    status TEXT,
    phone TEXT,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS alert (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    hazard_id INTEGER NOT NULL REFERENCES hazard(id) ON DELETE CASCADE,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_hazard_lat ON hazard(lat);
CREATE INDEX IF NOT EXISTS idx_shelter_lat ON shelter(lat);
CREATE INDEX IF NOT EXISTS idx_alert_created ON alert(created_at);
"""

def _lat_band(observer: Location, radius_km: float) -> tuple:
    delta = radius_km / KM_PER_DEGREE
    return (observer.lat - delta, observer.lat + delta)

class SQLiteFeedStore:
    """위험/대피소/경보 테이블 관리"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteFeedStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteFeedStore 스키마 초기화 완료")

    async def upsert_hazards(self, records: Iterable[RawRecord]) -> Dict[str, str]:
        """
        위험 레코드를 (source, source_event_id) 기준으로 저장/갱신합니다.

        Returns:
            새로 추가된 위험의 {source_event_id: id}
        """
        created: Dict[str, str] = {}
        count = 0
        async with connect(self.path) as db:
            for r in records:
                attrs = dict(r.attributes)
                source_event_id = r.source_id or r.id
                cursor = await db.execute(
                    "SELECT id FROM hazard WHERE source = ? AND source_event_id = ?",
                    (r.source, source_event_id)
                )
                row = await cursor.fetchone()
                if row:
                    await db.execute(
                        "UPDATE hazard SET type = ?, lat = ?, lon = ?, occurred_at = ?, attributes = ? "
                        "WHERE id = ?",
                        (r.type or "other", r.lat, r.lon, attrs.get("time"), json.dumps(attrs), row["id"])
                    )
                else:
                    cursor = await db.execute(
                        "INSERT INTO hazard (type, source, source_event_id, lat, lon, occurred_at, attributes) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (r.type or "other", r.source, source_event_id, r.lat, r.lon,
                         attrs.get("time"), json.dumps(attrs))
                    )
                    created[source_event_id] = str(cursor.lastrowid)
                count += 1
            await db.commit()
        log.info(f"위험 레코드 저장됨 count:{count} new:{len(created)}")
        return created

    async def insert_shelters(self, shelters: Iterable[Dict[str, Any]]) -> int:
        """대피소 행을 저장합니다. name/lat/lon 필수."""
        count = 0
        async with connect(self.path) as db:
            for s in shelters:
                await db.execute(
                    "INSERT INTO shelter (name, type, address, lat, lon, capacity, status, phone, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (s["name"], s.get("type"), s.get("address"), s["lat"], s["lon"],
                     s.get("capacity"), s.get("status"), s.get("phone"), utc_now())
                )
                count += 1
            await db.commit()
        log.info(f"대피소 저장됨 count:{count}")
        return count

    async def insert_alert(self, hazard_id: str, message: str,
                           created_at: Optional[str] = None) -> str:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO alert (hazard_id, message, created_at) VALUES (?, ?, ?)",
                (hazard_id, message, created_at or utc_now())
            )
            await db.commit()
            return str(cursor.lastrowid)

    async def find_hazard_id(self, source: str, source_event_id: str) -> Optional[str]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id FROM hazard WHERE source = ? AND source_event_id = ?",
                (source, source_event_id)
            )
            row = await cursor.fetchone()
            return str(row["id"]) if row else None

class SQLiteHazardSource:
    """hazard 테이블 기반 위험 소스"""

    name = "hazards"

    def __init__(self, store: SQLiteFeedStore):
        self.store = store

    async def fetch_hazards(self, observer: Location, radius_km: float) -> List[RawRecord]:
        lo, hi = _lat_band(observer, radius_km)
        try:
            async with connect(self.store.path) as db:
                cursor = await db.execute(
                    "SELECT * FROM hazard WHERE lat BETWEEN ? AND ?", (lo, hi)
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise SourceUnavailable(self.name, e)

        return [
            RawRecord(
                id=str(r["id"]),
                lat=r["lat"],
                lon=r["lon"],
                source=r["source"],
                source_id=r["source_event_id"],
                type=r["type"],
                attributes=json.loads(r["attributes"] or "{}"),
            )
            for r in rows
        ]

class SQLiteShelterSource:
    """shelter 테이블 기반 자원 소스"""

    name = "shelters"

    def __init__(self, store: SQLiteFeedStore):
        self.store = store

    async def fetch_resources(self, observer: Location, radius_km: float) -> List[RawRecord]:
        lo, hi = _lat_band(observer, radius_km)
        try:
            async with connect(self.store.path) as db:
                cursor = await db.execute(
                    "SELECT * FROM shelter WHERE lat BETWEEN ? AND ?", (lo, hi)
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise SourceUnavailable(self.name, e)

        return [
            RawRecord(
                id=str(r["id"]),
                lat=r["lat"],
                lon=r["lon"],
                source=self.name,
                type=r["type"],
                attributes={
                    "name": r["name"],
                    "address": r["address"],
                    "capacity": r["capacity"],
                    "status": r["status"],
                    "phone": r["phone"],
                },
            )
            for r in rows
        ]

class SQLiteAlertSource:
    """alert + hazard 조인 기반 경보 소스"""

    name = "alerts"

    def __init__(self, store: SQLiteFeedStore):
        self.store = store

    async def fetch_alerts(self, limit: Optional[int] = None,
                           observer: Optional[Location] = None,
                           radius_km: Optional[float] = None) -> List[Dict[str, Any]]:
        query = (
            "SELECT a.id, a.message, a.created_at, a.hazard_id, "
            "h.lat AS hazard_lat, h.lon AS hazard_lon, h.type AS hazard_type, "
            "h.attributes AS hazard_attributes "
            "FROM alert a JOIN hazard h ON a.hazard_id = h.id"
        )
        params: list = []
        if observer is not None and radius_km is not None:
            # 좌표 없는 위험의 경보는 항상 포함
            lo, hi = _lat_band(observer, radius_km)
            query += " WHERE h.lat IS NULL OR h.lon IS NULL OR h.lat BETWEEN ? AND ?"
            params += [lo, hi]
        query += " ORDER BY a.created_at DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        try:
            async with connect(self.store.path) as db:
                cursor = await db.execute(query, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise SourceUnavailable(self.name, e)

        alerts = []
        for r in rows:
            attrs = json.loads(r["hazard_attributes"] or "{}")
            alerts.append({
                "id": str(r["id"]),
                "message": r["message"],
                "created_at": r["created_at"],
                "hazard_id": str(r["hazard_id"]),
                "hazard_lat": r["hazard_lat"],
                "hazard_lon": r["hazard_lon"],
                "hazard_type": r["hazard_type"],
                "hazard_severity": attrs.get("severity"),
                "hazard_mag": attrs.get("mag"),
                "hazard_title": attrs.get("title") or attrs.get("place"),
            })
        return alerts
