"""FastAPI 应用主文件

app 创建 + lifespan 管理：
DB 初始化/关闭、LLM 组件初始化、编排器加载看板与中断恢复、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from nexusboard.core.config import get_db_path
from nexusboard.core.store import create_store_group
from nexusboard.provider import (
    AliasRegistry,
    FallbackManager,
    LiteLLMClient,
    OfflineMessageAdapter,
    load_provider_config,
)

from .errors import error_response
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import drafts, health, insights, knowledge, stream, tasks
from .services.analysis_aggregator import AnalysisAggregator
from .services.board_events import BoardEventHub
from .services.content_provider import ContentProvider
from .services.knowledge_service import KnowledgeService
from .services.llm_service import LLMService
from .services.task_orchestrator import TaskOrchestrator

log = structlog.get_logger()


def build_llm_service(app: FastAPI) -> LLMService:
    """根据 ProviderConfig 选择 litellm 或 offline 模式"""
    provider_config = load_provider_config()
    app.state.provider_config = provider_config
    alias_registry = AliasRegistry()

    if provider_config.llm_mode == "litellm":
        litellm_client = LiteLLMClient(
            proxy_base_url=provider_config.proxy_base_url,
            proxy_api_key=provider_config.proxy_api_key.get_secret_value(),
            timeout_s=provider_config.timeout_s,
        )
        fallback_manager = FallbackManager(primary=litellm_client, fallback=None)
        app.state.litellm_client = litellm_client
        log.info(
            "llm_service_initialized",
            mode="litellm",
            proxy_url=provider_config.proxy_base_url,
            timeout_s=provider_config.timeout_s,
        )
    else:
        fallback_manager = FallbackManager(primary=OfflineMessageAdapter(), fallback=None)
        app.state.litellm_client = None
        log.info("llm_service_initialized", mode="offline")

    return LLMService(fallback_manager=fallback_manager, alias_registry=alias_registry)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """启动时初始化 Store / LLM / 编排器，关闭时取消在途分析并关闭连接"""
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    event_hub = BoardEventHub()
    app.state.event_hub = event_hub

    llm_service = build_llm_service(app)
    app.state.llm_service = llm_service

    content_provider = ContentProvider(llm_service)
    app.state.content_provider = content_provider

    orchestrator = TaskOrchestrator(
        task_store=store_group.task_store,
        aggregator=AnalysisAggregator(content_provider),
        event_hub=event_hub,
    )
    await orchestrator.load()
    orchestrator.recover_interrupted()
    app.state.orchestrator = orchestrator

    app.state.knowledge_service = KnowledgeService(
        store=store_group.knowledge_store,
        content_provider=content_provider,
    )

    try:
        yield
    finally:
        await orchestrator.shutdown()
        await store_group.conn.close()


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        422,
        "VALIDATION_ERROR",
        "Invalid request",
        details=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ],
    )


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="NexusBoard Gateway",
        version="0.1.0",
        description="AI 增强看板 API",
        lifespan=lifespan,
    )

    # 注册中间件（后添加的先执行：Logging 先绑定 request_id，Trace 再绑定 trace_id）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(drafts.router, tags=["drafts"])
    app.include_router(insights.router, tags=["insights"])
    app.include_router(knowledge.router, tags=["knowledge"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn nexusboard.gateway.main:app）
app = create_app()
