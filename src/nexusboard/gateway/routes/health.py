"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready:  Readiness 检查。profile=core（默认）仅检查 SQLite；
             profile=llm/full 额外探测 LiteLLM Proxy。
"""

import structlog
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="core（默认）仅核心检查；llm/full 包含 LiteLLM Proxy 健康检查",
    ),
):
    effective_profile = profile or "core"
    checks: dict = {}
    all_ok = True

    try:
        cursor = await request.app.state.store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        checks["sqlite"] = f"error: {e}"
        all_ok = False

    checks["llm_mode"] = request.app.state.provider_config.llm_mode

    if effective_profile in ("llm", "full"):
        litellm_client = getattr(request.app.state, "litellm_client", None)
        if litellm_client is None:
            # offline 模式无需探测
            checks["litellm_proxy"] = "skipped"
        elif await litellm_client.health_check():
            checks["litellm_proxy"] = "ok"
        else:
            checks["litellm_proxy"] = "unreachable"
            all_ok = False
    else:
        checks["litellm_proxy"] = "skipped"

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": effective_profile,
            "checks": checks,
        },
    )
