"""core 测试配置"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from nexusboard.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    group = await create_store_group(str(tmp_path / "sqlite" / "core.db"))
    yield group
    await group.conn.close()
