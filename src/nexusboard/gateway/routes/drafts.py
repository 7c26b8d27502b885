"""任务草稿路由

POST /api/drafts: 将原始需求改写为三种风格的任务草稿（不落库）。
"""

import structlog
from fastapi import APIRouter, Depends
from nexusboard.provider import ProviderError
from pydantic import BaseModel, Field

from ..deps import get_content_provider
from ..errors import error_response

log = structlog.get_logger()

router = APIRouter()


class DraftRequest(BaseModel):
    raw_input: str = Field(min_length=1, description="原始需求文本")


@router.post("/api/drafts")
async def draft_tasks(body: DraftRequest, content_provider=Depends(get_content_provider)):
    try:
        drafts = await content_provider.draft_tasks(body.raw_input)
    except ProviderError as e:
        log.warning("task_drafting_failed", error_type=type(e).__name__)
        return error_response(502, "PROVIDER_ERROR", "Task drafting failed")
    return {"drafts": [d.model_dump(mode="json", exclude={"task_id"}) for d in drafts]}
