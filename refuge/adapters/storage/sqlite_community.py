"""
SQLite-based community store for refuge.

This module persists user public tags, neighbor edges and shared
community resources. Uniqueness and self-loop rules are enforced by
the schema; tag collisions surface as TagConflict.
"""

import aiosqlite
from typing import List, Optional
from refuge.core.errors import NotFoundError, SelfReferenceError, TagConflict
from refuge.core.models import CommunityResource, CommunityUser, Location, NeighborEdge
from refuge.observability.logging_setup import get_logger
from .connection import connect, utc_now

log = get_logger("refuge.community_store")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS user_account (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL DEFAULT '',
    public_tag TEXT UNIQUE DEFAULT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS user_neighbor (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES user_account(id) ON DELETE CASCADE,
    neighbor_id INTEGER NOT NULL REFERENCES user_account(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL,
    UNIQUE(user_id, neighbor_id),
    CHECK (user_id != neighbor_id)
);
CREATE TABLE IF NOT EXISTS community_resource (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL REFERENCES user_account(id) ON DELETE CASCADE,
    type TEXT NOT NULL CHECK (type IN ('offering', 'requesting')),
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'claimed', 'completed')),
    lat REAL NOT NULL,
    lon REAL NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_neighbor_user ON user_neighbor(user_id);
CREATE INDEX IF NOT EXISTS idx_resource_status ON community_resource(status);
"""

def _user(row) -> CommunityUser:
    return CommunityUser(id=str(row["id"]), name=row["name"], public_tag=row["public_tag"])

def _resource(row) -> CommunityResource:
    return CommunityResource(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        type=row["type"],
        title=row["title"],
        description=row["description"] or "",
        status=row["status"],
        location=Location(lat=row["lat"], lon=row["lon"]),
        created_at=row["created_at"],
    )

class SQLiteCommunityStore:
    """SQLite 기반 커뮤니티 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteCommunityStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteCommunityStore 스키마 초기화 완료")

    # ---- 사용자 ----

    async def create_user(self, name: str = "", public_tag: Optional[str] = None) -> CommunityUser:
        """사용자를 생성합니다. 태그 충돌 시 TagConflict."""
        try:
            async with connect(self.path) as db:
                cursor = await db.execute(
                    "INSERT INTO user_account (name, public_tag, created_at) VALUES (?, ?, ?)",
                    (name, public_tag, utc_now())
                )
                await db.commit()
                return CommunityUser(id=str(cursor.lastrowid), name=name, public_tag=public_tag)
        except aiosqlite.IntegrityError:
            raise TagConflict(public_tag or "")

    async def get_user(self, user_id: str) -> Optional[CommunityUser]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, name, public_tag FROM user_account WHERE id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            return _user(row) if row else None

    async def find_user_by_tag(self, tag: str) -> Optional[CommunityUser]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, name, public_tag FROM user_account WHERE public_tag = ?", (tag,)
            )
            row = await cursor.fetchone()
            return _user(row) if row else None

    async def list_untagged_users(self) -> List[CommunityUser]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, name, public_tag FROM user_account WHERE public_tag IS NULL ORDER BY id"
            )
            return [_user(r) for r in await cursor.fetchall()]

    async def set_public_tag(self, user_id: str, tag: str) -> bool:
        """
        태그가 비어 있는 사용자에게만 태그를 저장합니다.

        Returns:
            저장했으면 True, 이미 태그가 있거나 사용자가 없으면 False

        Raises:
            TagConflict: 다른 사용자가 같은 태그를 사용 중
        """
        try:
            async with connect(self.path) as db:
                cursor = await db.execute(
                    "UPDATE user_account SET public_tag = ? WHERE id = ? AND public_tag IS NULL",
                    (tag, user_id)
                )
                await db.commit()
                return cursor.rowcount == 1
        except aiosqlite.IntegrityError:
            # UNIQUE(public_tag) 위반
            raise TagConflict(tag)

    # ---- 이웃 ----

    async def insert_edge(self, user_id: str, neighbor_id: str) -> bool:
        """
        이웃 간선을 추가합니다.

        Returns:
            새로 추가했으면 True, 이미 있으면 False
        """
        try:
            async with connect(self.path) as db:
                cursor = await db.execute(
                    "INSERT INTO user_neighbor (user_id, neighbor_id, created_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(user_id, neighbor_id) DO NOTHING",
                    (user_id, neighbor_id, utc_now())
                )
                await db.commit()
                return cursor.rowcount == 1
        except aiosqlite.IntegrityError as e:
            if "CHECK" in str(e):
                raise SelfReferenceError(user_id)
            raise NotFoundError(f"unknown user in edge {user_id} -> {neighbor_id}")

    async def delete_edge(self, user_id: str, neighbor_id: str) -> bool:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "DELETE FROM user_neighbor WHERE user_id = ? AND neighbor_id = ?",
                (user_id, neighbor_id)
            )
            await db.commit()
            return cursor.rowcount > 0

    async def list_edges(self, user_id: str) -> List[NeighborEdge]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT user_id, neighbor_id, created_at FROM user_neighbor "
                "WHERE user_id = ? ORDER BY id",
                (user_id,)
            )
            return [
                NeighborEdge(user_id=str(r["user_id"]), neighbor_id=str(r["neighbor_id"]),
                             created_at=r["created_at"])
                for r in await cursor.fetchall()
            ]

    async def count_edges(self, user_id: str, neighbor_id: str) -> int:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM user_neighbor WHERE user_id = ? AND neighbor_id = ?",
                (user_id, neighbor_id)
            )
            result = await cursor.fetchone()
            return result[0] if result else 0

    # ---- 공유 자원 ----

    async def insert_resource(self, user_id: str, type: str, title: str,
                              description: str, location: Location) -> CommunityResource:
        try:
            async with connect(self.path) as db:
                created_at = utc_now()
                cursor = await db.execute(
                    "INSERT INTO community_resource "
                    "(user_id, type, title, description, status, lat, lon, created_at) "
                    "VALUES (?, ?, ?, ?, 'active', ?, ?, ?)",
                    (user_id, type, title, description, location.lat, location.lon, created_at)
                )
                await db.commit()
                resource_id = str(cursor.lastrowid)
        except aiosqlite.IntegrityError:
            raise NotFoundError(f"user {user_id} not found")

        return CommunityResource(
            id=resource_id, user_id=str(user_id), type=type, title=title,
            description=description, status="active", location=location, created_at=created_at,
        )

    async def get_resource(self, resource_id: str) -> Optional[CommunityResource]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT * FROM community_resource WHERE id = ?", (resource_id,)
            )
            row = await cursor.fetchone()
            return _resource(row) if row else None

    async def transition_resource(self, resource_id: str, expected: str, target: str) -> bool:
        """현재 상태가 expected일 때만 target으로 바꿉니다."""
        async with connect(self.path) as db:
            cursor = await db.execute(
                "UPDATE community_resource SET status = ? WHERE id = ? AND status = ?",
                (target, resource_id, expected)
            )
            await db.commit()
            return cursor.rowcount == 1

    async def list_active_resources(self) -> List[CommunityResource]:
        async with connect(self.path) as db:
            cursor = await db.execute(
                "SELECT * FROM community_resource WHERE status = 'active' ORDER BY created_at DESC"
            )
            return [_resource(r) for r in await cursor.fetchall()]
