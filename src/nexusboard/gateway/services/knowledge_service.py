"""KnowledgeService -- 知识库资源管理

URL / 文件经 ContentProvider 分析生成学习卡片并持久化。
URL 分析失败时按 NEXUSBOARD_KNOWLEDGE_PLACEHOLDER 策略写入占位资源；
文件分析失败始终向上抛出。
"""

import asyncio
from datetime import UTC, datetime

import structlog
from ulid import ULID

from nexusboard.core.config import knowledge_placeholder_enabled
from nexusboard.core.exceptions import NotFoundError
from nexusboard.core.models import (
    BasicInfo,
    KnowledgeResource,
    ManagementInfo,
    ResourceFile,
    ResourceLevel,
    ResourceMetadata,
    ResourceType,
    SearchOptimization,
)
from nexusboard.core.store import KnowledgeStore
from nexusboard.provider import ProviderError

from .content_provider import ContentProvider, ResourceAnalysis

log = structlog.get_logger()

AI_CURATOR = "AI Curator"
PLACEHOLDER_TITLE = "URL analysis failed"
PLACEHOLDER_SUMMARY = "The content could not be analyzed. Retry later."

_VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo")


def detect_type_from_url(url: str) -> ResourceType:
    """视频站点识别为 VIDEO，其余为 ARTICLE"""
    lowered = url.lower()
    if any(host in lowered for host in _VIDEO_HOSTS):
        return ResourceType.VIDEO
    return ResourceType.ARTICLE


class KnowledgeService:
    """知识资源服务"""

    def __init__(
        self,
        store: KnowledgeStore,
        content_provider: ContentProvider,
        placeholder_on_failure: bool | None = None,
    ) -> None:
        """
        Args:
            store: 知识资源存储
            content_provider: 内容分析服务
            placeholder_on_failure: URL 分析失败时是否写入占位资源，None 时读取环境变量
        """
        self._store = store
        self._provider = content_provider
        self._placeholder_on_failure = (
            knowledge_placeholder_enabled()
            if placeholder_on_failure is None
            else placeholder_on_failure
        )
        self._retry_locks: dict[str, asyncio.Lock] = {}

    async def list_resources(self) -> list[KnowledgeResource]:
        return await self._store.list_resources()

    async def get_resource(self, resource_id: str) -> KnowledgeResource | None:
        return await self._store.get_resource(resource_id)

    async def add_resource_from_url(self, url: str) -> KnowledgeResource:
        """分析 URL 并保存为知识资源

        Raises:
            ProviderError: 分析失败且占位策略关闭
            NotPersistedError: 写入失败
        """
        content_type = detect_type_from_url(url)
        management = ManagementInfo(original_url=url)
        try:
            analysis = await self._provider.analyze_resource(url, content_type)
        except ProviderError as e:
            if not self._placeholder_on_failure:
                raise
            log.warning(
                "resource_analysis_failed_placeholder",
                url=url,
                error_type=type(e).__name__,
            )
            resource = KnowledgeResource(
                resource_id=str(ULID()),
                basic_info=BasicInfo(
                    title=PLACEHOLDER_TITLE,
                    summary=PLACEHOLDER_SUMMARY,
                    content_type=content_type,
                    author=AI_CURATOR,
                ),
                management_info=management,
                metadata=ResourceMetadata(
                    uploaded_at=datetime.now(UTC),
                    analysis_failed=True,
                ),
            )
        else:
            resource = self._build_resource(analysis, content_type, management)

        await self._store.create_resource(resource)
        log.info(
            "knowledge_resource_added",
            resource_id=resource.resource_id,
            source="url",
            analysis_failed=resource.metadata.analysis_failed,
        )
        return resource

    async def add_resource_from_file(self, file: ResourceFile) -> KnowledgeResource:
        """分析上传文件并保存为知识资源（分析失败直接抛出）"""
        analysis = await self._provider.analyze_resource(file, ResourceType.VIDEO)
        resource = self._build_resource(
            analysis,
            ResourceType.VIDEO,
            ManagementInfo(file_name=file.file_name, file_type=file.mime_type),
            fallback_title=file.file_name,
        )
        await self._store.create_resource(resource)
        log.info(
            "knowledge_resource_added",
            resource_id=resource.resource_id,
            source="file",
        )
        return resource

    async def retry_resource(self, resource_id: str) -> KnowledgeResource:
        """重新分析资源

        URL 来源：重新分析并逐字段覆盖（新结果缺失的字段保留原值）；
        文件来源：原文件不保留，直接返回现有资源。

        Raises:
            NotFoundError: 资源不存在
            ProviderError: 重新分析失败
        """
        # 不存在的 ID 不建锁条目
        if await self._store.get_resource(resource_id) is None:
            raise NotFoundError(resource_id, entity="KnowledgeResource")

        async with self._retry_locks.setdefault(resource_id, asyncio.Lock()):
            target = await self._store.get_resource(resource_id)
            if target is None:
                raise NotFoundError(resource_id, entity="KnowledgeResource")

            url = target.management_info.original_url
            if not url:
                return target

            analysis = await self._provider.analyze_resource(
                url, target.basic_info.content_type
            )
            basic = target.basic_info
            search = target.search_optimization
            updated = target.model_copy(
                update={
                    "basic_info": basic.model_copy(
                        update={
                            "title": analysis.title or basic.title,
                            "summary": analysis.summary or basic.summary,
                            "tags": analysis.tags or basic.tags,
                            "level": analysis.difficulty or basic.level,
                        }
                    ),
                    "search_optimization": search.model_copy(
                        update={
                            "keywords": analysis.key_points or search.keywords,
                            "chapters": analysis.chapters or search.chapters,
                        }
                    ),
                    "metadata": target.metadata.model_copy(update={"analysis_failed": False}),
                }
            )
            await self._store.update_resource(updated)
            log.info("knowledge_resource_reanalyzed", resource_id=resource_id)
            return updated

    async def delete_resource(self, resource_id: str) -> None:
        await self._store.delete_resource(resource_id)
        self._retry_locks.pop(resource_id, None)

    @staticmethod
    def _build_resource(
        analysis: ResourceAnalysis,
        content_type: ResourceType,
        management: ManagementInfo,
        fallback_title: str = "Untitled",
    ) -> KnowledgeResource:
        return KnowledgeResource(
            resource_id=str(ULID()),
            basic_info=BasicInfo(
                title=analysis.title or fallback_title,
                summary=analysis.summary or "No summary",
                tags=analysis.tags,
                level=analysis.difficulty or ResourceLevel.INTERMEDIATE,
                content_type=content_type,
                author=AI_CURATOR,
            ),
            search_optimization=SearchOptimization(
                keywords=analysis.key_points,
                chapters=analysis.chapters,
            ),
            management_info=management,
            metadata=ResourceMetadata(uploaded_at=datetime.now(UTC)),
        )
