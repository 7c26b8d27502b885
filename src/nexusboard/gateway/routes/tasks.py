"""任务路由

GET    /api/tasks                          看板任务列表（可按 status 筛选）
GET    /api/tasks/{task_id}                任务详情
POST   /api/tasks                          创建任务（201，后台启动 AI 分析）
PUT    /api/tasks/{task_id}                整体更新
PATCH  /api/tasks/{task_id}/status         更新看板列状态
DELETE /api/tasks/{task_id}                删除任务（204）
POST   /api/tasks/{task_id}/analysis/retry 重新执行 AI 分析（202）
POST   /api/tasks/{task_id}/chat           任务助手对话
"""

import structlog
from fastapi import APIRouter, Body, Depends, Query
from nexusboard.core.exceptions import (
    EnrichmentInProgressError,
    NotFoundError,
    NotPersistedError,
    TaskIdConflictError,
    ValidationError,
)
from nexusboard.core.models import Task, TaskDraft, TaskStatus
from nexusboard.provider import ProviderError
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from starlette.responses import JSONResponse, Response

from ..deps import get_content_provider, get_orchestrator
from ..errors import error_response, not_persisted, task_not_found

log = structlog.get_logger()

router = APIRouter()


class StatusUpdateRequest(BaseModel):
    """看板列状态更新请求体"""

    status: TaskStatus


class ChatTurn(BaseModel):
    role: str = Field(pattern="^(user|assistant)$")
    content: str


class ChatRequest(BaseModel):
    """任务助手对话请求体"""

    message: str = Field(min_length=1)
    history: list[ChatTurn] = Field(default_factory=list)


def _task_body(task: Task, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"task": task.model_dump(mode="json")})


@router.get("/api/tasks")
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按看板列状态筛选"),
    orchestrator=Depends(get_orchestrator),
):
    """看板任务列表（创建顺序）"""
    tasks = orchestrator.list_tasks(status)
    return {"tasks": [t.model_dump(mode="json") for t in tasks]}


@router.get("/api/tasks/{task_id}")
async def get_task(task_id: str, orchestrator=Depends(get_orchestrator)):
    task = orchestrator.get_task(task_id)
    if task is None:
        return task_not_found(task_id)
    return {
        "task": task.model_dump(mode="json"),
        "enriching": orchestrator.is_enriching(task_id),
    }


@router.post("/api/tasks")
async def create_task(draft: TaskDraft, orchestrator=Depends(get_orchestrator)):
    """创建任务，立即返回 ai_status=PROCESSING 的任务"""
    try:
        task = await orchestrator.create_task(draft)
    except TaskIdConflictError as e:
        return error_response(409, "TASK_ID_CONFLICT", f"Task with id {e.task_id} already exists")
    except ValidationError as e:
        return error_response(422, "VALIDATION_ERROR", "Invalid task draft", details=e.errors)
    except NotPersistedError:
        return not_persisted()
    return _task_body(task, status_code=201)


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: dict = Body(...),
    orchestrator=Depends(get_orchestrator),
):
    """整体更新任务（请求体为完整任务，task_id 以路径为准）"""
    try:
        task = Task.model_validate({**body, "task_id": task_id})
    except PydanticValidationError as e:
        return error_response(
            422,
            "VALIDATION_ERROR",
            "Invalid task payload",
            details=e.errors(include_url=False, include_context=False),
        )

    try:
        saved = await orchestrator.update_task(task)
    except NotFoundError:
        return task_not_found(task_id)
    except NotPersistedError:
        return not_persisted()
    return _task_body(saved)


@router.patch("/api/tasks/{task_id}/status")
async def update_status(
    task_id: str,
    body: StatusUpdateRequest,
    orchestrator=Depends(get_orchestrator),
):
    try:
        task = await orchestrator.update_status(task_id, body.status)
    except NotFoundError:
        return task_not_found(task_id)
    except NotPersistedError:
        return not_persisted()
    return _task_body(task)


@router.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str, orchestrator=Depends(get_orchestrator)):
    if orchestrator.get_task(task_id) is None:
        return task_not_found(task_id)
    try:
        await orchestrator.delete_task(task_id)
    except NotPersistedError:
        return not_persisted()
    return Response(status_code=204)


@router.post("/api/tasks/{task_id}/analysis/retry")
async def retry_analysis(task_id: str, orchestrator=Depends(get_orchestrator)):
    """重新执行 AI 分析；已有在途分析时返回 409"""
    try:
        task = await orchestrator.retry_enrichment(task_id)
    except NotFoundError:
        return task_not_found(task_id)
    except EnrichmentInProgressError:
        return error_response(
            409,
            "ENRICHMENT_IN_PROGRESS",
            f"AI analysis for task {task_id} is already running",
        )
    except NotPersistedError:
        return not_persisted()
    return _task_body(task, status_code=202)


@router.post("/api/tasks/{task_id}/chat")
async def chat_with_guide(
    task_id: str,
    body: ChatRequest,
    orchestrator=Depends(get_orchestrator),
    content_provider=Depends(get_content_provider),
):
    task = orchestrator.get_task(task_id)
    if task is None:
        return task_not_found(task_id)
    try:
        reply = await content_provider.chat_with_guide(
            [turn.model_dump() for turn in body.history],
            body.message,
            task,
        )
    except ProviderError as e:
        log.warning("guide_chat_failed", task_id=task_id, error_type=type(e).__name__)
        return error_response(502, "PROVIDER_ERROR", "The AI guide is currently unavailable")
    return {"reply": reply}
