"""
SQLite connection helper for refuge.

Every store operation opens its own connection and releases it on exit;
no connection or pool is shared between requests.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator
import aiosqlite

@asynccontextmanager
async def connect(path: str) -> AsyncIterator[aiosqlite.Connection]:
    """외래키가 켜진 연결을 열고, 블록이 끝나면 닫습니다."""
    async with aiosqlite.connect(path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        yield db

def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
