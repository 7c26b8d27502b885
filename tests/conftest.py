"""全局 pytest 配置 -- 临时 SQLite 数据库与任务构造 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from nexusboard.core.models import AIStatus, Task


def _build_task(task_id: str = "t1", title: str = "Draft spec", **overrides) -> Task:
    offset = overrides.pop("offset_s", 0)
    now = datetime(2026, 3, 1, 9, 0, tzinfo=UTC) + timedelta(seconds=offset)
    fields = {
        "task_id": task_id,
        "title": title,
        "due_date": now + timedelta(days=7),
        "created_at": now,
        "updated_at": now,
        "ai_status": AIStatus.PROCESSING,
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """任务构造工厂，created_at 可通过 offset_s 错开"""
    return _build_task


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from nexusboard.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "conn.db"))
    await init_db(conn)
    yield conn
    await conn.close()
