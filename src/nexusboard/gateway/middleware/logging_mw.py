"""LoggingMiddleware -- 请求级日志

沿用客户端传入的 X-Request-ID，缺省时生成 ULID；绑定到 structlog contextvars
并在响应头回写。探活请求只记 debug。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
_QUIET_PATHS = frozenset({"/health", "/ready"})


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )

        log = structlog.get_logger()
        emit = log.adebug if path in _QUIET_PATHS else log.ainfo
        await emit("request_started")
        start = time.monotonic()

        response = await call_next(request)

        await emit(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
