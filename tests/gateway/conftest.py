"""gateway 测试配置 -- 以离线 LLM 模式运行完整 lifespan 的 app / client"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[FastAPI, None]:
    """临时数据库 + offline 模式的 FastAPI 应用（lifespan 已启动）"""
    monkeypatch.setenv("NEXUSBOARD_DB_PATH", str(tmp_path / "sqlite" / "api.db"))
    monkeypatch.setenv("NEXUSBOARD_LLM_MODE", "offline")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    monkeypatch.delenv("NEXUSBOARD_KNOWLEDGE_PLACEHOLDER", raising=False)

    from nexusboard.gateway.main import create_app

    application = create_app()
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
