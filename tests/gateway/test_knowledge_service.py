"""KnowledgeService 测试 -- 占位策略、文件分析、重新分析合并"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from nexusboard.core.exceptions import NotFoundError
from nexusboard.core.models import ResourceFile, ResourceLevel, ResourceType
from nexusboard.core.store import StoreGroup, create_store_group
from nexusboard.gateway.services.content_provider import ResourceAnalysis
from nexusboard.gateway.services.knowledge_service import (
    KnowledgeService,
    detect_type_from_url,
)
from nexusboard.provider import ProviderError


class StubResourceProvider:
    """analyze_resource 依次返回 results 中的值；值为异常时抛出"""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls: list[tuple] = []

    async def analyze_resource(self, source, content_type):
        self.calls.append((source, content_type))
        await asyncio.sleep(0)
        value = self.results.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


def _analysis(**fields) -> ResourceAnalysis:
    data = {
        "title": "Asyncio in depth",
        "summary": "One.\nTwo.\nThree.",
        "tags": ["python"],
        "difficulty": "Advanced",
        "key_points": ["event loop"],
    }
    data.update(fields)
    return ResourceAnalysis.model_validate(data)


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    group = await create_store_group(str(tmp_path / "sqlite" / "knowledge.db"))
    yield group
    await group.conn.close()


class TestDetectType:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.youtube.com/watch?v=1", ResourceType.VIDEO),
            ("https://youtu.be/1", ResourceType.VIDEO),
            ("https://VIMEO.com/1", ResourceType.VIDEO),
            ("https://docs.python.org/3/", ResourceType.ARTICLE),
        ],
    )
    def test_detect(self, url: str, expected: ResourceType):
        assert detect_type_from_url(url) == expected


class TestAddResource:
    async def test_add_from_url(self, store_group: StoreGroup):
        provider = StubResourceProvider(_analysis())
        service = KnowledgeService(store_group.knowledge_store, provider)

        resource = await service.add_resource_from_url("https://docs.python.org")

        assert resource.basic_info.level == ResourceLevel.ADVANCED
        assert resource.basic_info.content_type == ResourceType.ARTICLE
        assert resource.search_optimization.keywords == ["event loop"]
        assert await service.get_resource(resource.resource_id) == resource

    async def test_missing_difficulty_defaults_to_intermediate(self, store_group: StoreGroup):
        provider = StubResourceProvider(_analysis(difficulty=None))
        service = KnowledgeService(store_group.knowledge_store, provider)

        resource = await service.add_resource_from_url("https://a.dev")
        assert resource.basic_info.level == ResourceLevel.INTERMEDIATE

    async def test_url_failure_placeholder(self, store_group: StoreGroup):
        provider = StubResourceProvider(ProviderError("down"))
        service = KnowledgeService(
            store_group.knowledge_store, provider, placeholder_on_failure=True
        )

        resource = await service.add_resource_from_url("https://youtu.be/x")

        assert resource.metadata.analysis_failed is True
        assert resource.basic_info.title == "URL analysis failed"
        assert resource.basic_info.content_type == ResourceType.VIDEO
        assert len(await service.list_resources()) == 1

    async def test_url_failure_propagates_when_disabled(self, store_group: StoreGroup):
        provider = StubResourceProvider(ProviderError("down"))
        service = KnowledgeService(
            store_group.knowledge_store, provider, placeholder_on_failure=False
        )

        with pytest.raises(ProviderError):
            await service.add_resource_from_url("https://a.dev")
        assert await service.list_resources() == []

    async def test_placeholder_policy_from_env(
        self, store_group: StoreGroup, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("NEXUSBOARD_KNOWLEDGE_PLACEHOLDER", "off")
        service = KnowledgeService(
            store_group.knowledge_store, StubResourceProvider(ProviderError("down"))
        )
        with pytest.raises(ProviderError):
            await service.add_resource_from_url("https://a.dev")

    async def test_file_failure_always_propagates(self, store_group: StoreGroup):
        provider = StubResourceProvider(ProviderError("down"))
        service = KnowledgeService(
            store_group.knowledge_store, provider, placeholder_on_failure=True
        )
        with pytest.raises(ProviderError):
            await service.add_resource_from_file(ResourceFile(file_name="a.mp4", content=b"x"))

    async def test_add_from_file(self, store_group: StoreGroup):
        provider = StubResourceProvider(_analysis(title=""))
        service = KnowledgeService(store_group.knowledge_store, provider)
        file = ResourceFile(file_name="talk.mp4", mime_type="video/mp4", content=b"x")

        resource = await service.add_resource_from_file(file)

        assert provider.calls[0] == (file, ResourceType.VIDEO)
        assert resource.basic_info.title == "talk.mp4"
        assert resource.basic_info.content_type == ResourceType.VIDEO
        assert resource.management_info.file_type == "video/mp4"


class TestRetryResource:
    async def test_merges_over_existing(self, store_group: StoreGroup):
        provider = StubResourceProvider(
            ProviderError("down"),
            _analysis(title="Recovered", tags=[], key_points=[]),
        )
        service = KnowledgeService(
            store_group.knowledge_store, provider, placeholder_on_failure=True
        )
        placeholder = await service.add_resource_from_url("https://a.dev")

        updated = await service.retry_resource(placeholder.resource_id)

        assert updated.basic_info.title == "Recovered"
        assert updated.basic_info.summary == "One.\nTwo.\nThree."
        # 新结果为空的字段保留原值
        assert updated.basic_info.tags == placeholder.basic_info.tags
        assert updated.metadata.analysis_failed is False
        assert await service.get_resource(placeholder.resource_id) == updated

    async def test_file_resource_unchanged(self, store_group: StoreGroup):
        provider = StubResourceProvider(_analysis())
        service = KnowledgeService(store_group.knowledge_store, provider)
        resource = await service.add_resource_from_file(
            ResourceFile(file_name="a.mp4", content=b"x")
        )

        assert await service.retry_resource(resource.resource_id) == resource
        assert len(provider.calls) == 1

    async def test_unknown_resource(self, store_group: StoreGroup):
        service = KnowledgeService(store_group.knowledge_store, StubResourceProvider())
        with pytest.raises(NotFoundError):
            await service.retry_resource("ghost")
        assert "ghost" not in service._retry_locks

    async def test_concurrent_retries_serialized(self, store_group: StoreGroup):
        provider = StubResourceProvider(
            _analysis(),
            _analysis(title="First retry"),
            _analysis(title="Second retry"),
        )
        service = KnowledgeService(store_group.knowledge_store, provider)
        resource = await service.add_resource_from_url("https://a.dev")

        results = await asyncio.gather(
            service.retry_resource(resource.resource_id),
            service.retry_resource(resource.resource_id),
        )

        assert [r.basic_info.title for r in results] == ["First retry", "Second retry"]
        stored = await service.get_resource(resource.resource_id)
        assert stored.basic_info.title == "Second retry"

    async def test_delete(self, store_group: StoreGroup):
        service = KnowledgeService(store_group.knowledge_store, StubResourceProvider(_analysis()))
        resource = await service.add_resource_from_url("https://a.dev")

        await service.delete_resource(resource.resource_id)
        assert await service.get_resource(resource.resource_id) is None
