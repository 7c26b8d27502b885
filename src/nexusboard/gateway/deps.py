"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

实例挂在 app.state 上，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from nexusboard.core.store import StoreGroup

from .services.board_events import BoardEventHub
from .services.content_provider import ContentProvider
from .services.knowledge_service import KnowledgeService
from .services.task_orchestrator import TaskOrchestrator


def get_store_group(request: Request) -> StoreGroup:
    return request.app.state.store_group


def get_orchestrator(request: Request) -> TaskOrchestrator:
    return request.app.state.orchestrator


def get_content_provider(request: Request) -> ContentProvider:
    return request.app.state.content_provider


def get_knowledge_service(request: Request) -> KnowledgeService:
    return request.app.state.knowledge_service


def get_event_hub(request: Request) -> BoardEventHub:
    return request.app.state.event_hub
