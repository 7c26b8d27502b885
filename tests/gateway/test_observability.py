"""中间件与日志配置测试"""

import logging

import pytest
from httpx import AsyncClient
from nexusboard.gateway.middleware.logging_config import setup_logfire, setup_logging
from nexusboard.gateway.middleware.trace_mw import extract_task_id

_ULID = "01JABCDEFGHJKMNPQRSTVWXYZ0"


class TestExtractTaskId:
    @pytest.mark.parametrize(
        "path,expected",
        [
            (f"/api/tasks/{_ULID}", _ULID),
            (f"/api/tasks/{_ULID}/analysis/retry", _ULID),
            ("/api/tasks", None),
            ("/api/tasks/t1", None),
            ("/api/knowledge/" + _ULID, None),
            ("/health", None),
        ],
    )
    def test_extract(self, path: str, expected: str | None):
        assert extract_task_id(path) == expected


class TestRequestMiddleware:
    async def test_request_id_header(self, client: AsyncClient):
        first = await client.get("/health")
        second = await client.get("/health")

        assert len(first.headers["X-Request-ID"]) == 26
        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    async def test_inbound_request_id_is_echoed(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "req-abc"})

        assert resp.headers["X-Request-ID"] == "req-abc"


class TestLoggingConfig:
    def test_json_format(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NEXUSBOARD_LOG_FORMAT", "json")
        monkeypatch.setenv("NEXUSBOARD_LOG_LEVEL", "warning")

        setup_logging()

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("LiteLLM").level == logging.WARNING

    def test_logfire_disabled_is_noop(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
        setup_logfire()
