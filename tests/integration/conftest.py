"""集成测试配置 -- 按 LLM 模式构建完整 app"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient


@pytest.fixture
def app_factory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[[str], AbstractAsyncContextManager]:
    """返回 (app, client) 上下文工厂，db 路径在同一测试内共享"""
    monkeypatch.setenv("NEXUSBOARD_DB_PATH", str(tmp_path / "sqlite" / "e2e.db"))
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    @asynccontextmanager
    async def _running(llm_mode: str = "offline"):
        monkeypatch.setenv("NEXUSBOARD_LLM_MODE", llm_mode)
        from nexusboard.gateway.main import create_app

        app: FastAPI = create_app()
        async with app.router.lifespan_context(app):
            async with AsyncClient(
                transport=ASGITransport(app=app),
                base_url="http://test",
            ) as client:
                yield app, client

    return _running
