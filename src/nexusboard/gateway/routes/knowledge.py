"""知识库路由

GET    /api/knowledge                  资源列表（最新在前）
GET    /api/knowledge/{resource_id}    资源详情
POST   /api/knowledge/urls             分析 URL 并保存（201）
POST   /api/knowledge/files?filename=  分析上传文件（原始请求体，201）
POST   /api/knowledge/{resource_id}/retry  重新分析
DELETE /api/knowledge/{resource_id}    删除（204）
"""

import structlog
from fastapi import APIRouter, Depends, Query, Request
from nexusboard.core.exceptions import NotFoundError, NotPersistedError
from nexusboard.core.models import KnowledgeResource, ResourceFile
from nexusboard.provider import ProviderError
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse, Response

from ..deps import get_knowledge_service
from ..errors import error_response, not_persisted

log = structlog.get_logger()

router = APIRouter()


class UrlRequest(BaseModel):
    url: str = Field(min_length=1, description="资源 URL")


def _resource_body(resource: KnowledgeResource, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"resource": resource.model_dump(mode="json")},
    )


def _resource_not_found(resource_id: str) -> JSONResponse:
    return error_response(
        404,
        "RESOURCE_NOT_FOUND",
        f"Knowledge resource with id {resource_id} does not exist",
    )


def _analysis_failed() -> JSONResponse:
    return error_response(502, "PROVIDER_ERROR", "Resource analysis failed")


@router.get("/api/knowledge")
async def list_resources(service=Depends(get_knowledge_service)):
    resources = await service.list_resources()
    return {"resources": [r.model_dump(mode="json") for r in resources]}


@router.get("/api/knowledge/{resource_id}")
async def get_resource(resource_id: str, service=Depends(get_knowledge_service)):
    resource = await service.get_resource(resource_id)
    if resource is None:
        return _resource_not_found(resource_id)
    return {"resource": resource.model_dump(mode="json")}


@router.post("/api/knowledge/urls")
async def add_from_url(body: UrlRequest, service=Depends(get_knowledge_service)):
    try:
        resource = await service.add_resource_from_url(body.url)
    except ProviderError as e:
        log.warning("knowledge_url_failed", error_type=type(e).__name__)
        return _analysis_failed()
    except NotPersistedError:
        return not_persisted()
    return _resource_body(resource, status_code=201)


@router.post("/api/knowledge/files")
async def add_from_file(
    request: Request,
    filename: str = Query(min_length=1, description="原始文件名"),
    service=Depends(get_knowledge_service),
):
    """请求体为文件原始字节，MIME 类型取自 Content-Type 头"""
    content = await request.body()
    if not content:
        return error_response(422, "VALIDATION_ERROR", "Request body must contain the file")

    file = ResourceFile(
        file_name=filename,
        mime_type=request.headers.get("content-type") or "application/octet-stream",
        content=content,
    )
    try:
        resource = await service.add_resource_from_file(file)
    except ProviderError as e:
        log.warning("knowledge_file_failed", error_type=type(e).__name__)
        return _analysis_failed()
    except NotPersistedError:
        return not_persisted()
    return _resource_body(resource, status_code=201)


@router.post("/api/knowledge/{resource_id}/retry")
async def retry_resource(resource_id: str, service=Depends(get_knowledge_service)):
    try:
        resource = await service.retry_resource(resource_id)
    except NotFoundError:
        return _resource_not_found(resource_id)
    except ProviderError as e:
        log.warning(
            "knowledge_retry_failed",
            resource_id=resource_id,
            error_type=type(e).__name__,
        )
        return _analysis_failed()
    except NotPersistedError:
        return not_persisted()
    return _resource_body(resource)


@router.delete("/api/knowledge/{resource_id}")
async def delete_resource(resource_id: str, service=Depends(get_knowledge_service)):
    if await service.get_resource(resource_id) is None:
        return _resource_not_found(resource_id)
    try:
        await service.delete_resource(resource_id)
    except NotPersistedError:
        return not_persisted()
    return Response(status_code=204)
