"""知识库 API 测试"""

from fastapi import FastAPI
from httpx import AsyncClient
from nexusboard.gateway.services.knowledge_service import KnowledgeService
from nexusboard.provider import ProviderError


class _FailingProvider:
    async def analyze_resource(self, source, content_type):
        raise ProviderError("secret upstream detail")


class TestKnowledgeApi:
    async def test_add_url(self, client: AsyncClient):
        resp = await client.post("/api/knowledge/urls", json={"url": "https://youtu.be/abc"})

        assert resp.status_code == 201
        resource = resp.json()["resource"]
        assert resource["basic_info"]["title"] == "Offline sample resource"
        assert resource["basic_info"]["content_type"] == "VIDEO"
        assert resource["basic_info"]["author"] == "AI Curator"
        assert resource["management_info"]["original_url"] == "https://youtu.be/abc"
        assert len(resource["resource_id"]) == 26

    async def test_add_file(self, client: AsyncClient):
        resp = await client.post(
            "/api/knowledge/files",
            params={"filename": "talk.mp4"},
            content=b"\x00\x01",
            headers={"content-type": "video/mp4"},
        )

        assert resp.status_code == 201
        management = resp.json()["resource"]["management_info"]
        assert management == {
            "original_url": None,
            "file_name": "talk.mp4",
            "file_type": "video/mp4",
        }

    async def test_add_file_requires_body(self, client: AsyncClient):
        resp = await client.post("/api/knowledge/files", params={"filename": "a.mp4"})
        assert resp.status_code == 422

    async def test_add_file_requires_filename(self, client: AsyncClient):
        resp = await client.post("/api/knowledge/files", content=b"x")
        assert resp.status_code == 422

    async def test_list_get_retry_delete(self, client: AsyncClient):
        first = (await client.post("/api/knowledge/urls", json={"url": "https://a.dev"})).json()
        second = (await client.post("/api/knowledge/urls", json={"url": "https://b.dev"})).json()
        first_id = first["resource"]["resource_id"]
        second_id = second["resource"]["resource_id"]

        listed = (await client.get("/api/knowledge")).json()["resources"]
        assert [r["resource_id"] for r in listed] == [second_id, first_id]

        resp = await client.get(f"/api/knowledge/{first_id}")
        assert resp.json()["resource"]["management_info"]["original_url"] == "https://a.dev"

        resp = await client.post(f"/api/knowledge/{first_id}/retry")
        assert resp.status_code == 200
        assert resp.json()["resource"]["metadata"]["analysis_failed"] is False

        assert (await client.delete(f"/api/knowledge/{first_id}")).status_code == 204
        assert (await client.get(f"/api/knowledge/{first_id}")).status_code == 404
        assert (await client.delete(f"/api/knowledge/{first_id}")).status_code == 404

    async def test_retry_unknown(self, client: AsyncClient):
        resp = await client.post("/api/knowledge/ghost/retry")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_provider_failure_without_placeholder(
        self, client: AsyncClient, app: FastAPI
    ):
        app.state.knowledge_service = KnowledgeService(
            store=app.state.store_group.knowledge_store,
            content_provider=_FailingProvider(),
            placeholder_on_failure=False,
        )

        resp = await client.post("/api/knowledge/urls", json={"url": "https://a.dev"})

        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "PROVIDER_ERROR"
        assert "secret upstream detail" not in resp.text

    async def test_provider_failure_with_placeholder(self, client: AsyncClient, app: FastAPI):
        app.state.knowledge_service = KnowledgeService(
            store=app.state.store_group.knowledge_store,
            content_provider=_FailingProvider(),
            placeholder_on_failure=True,
        )

        resp = await client.post("/api/knowledge/urls", json={"url": "https://a.dev"})

        assert resp.status_code == 201
        resource = resp.json()["resource"]
        assert resource["basic_info"]["title"] == "URL analysis failed"
        assert resource["metadata"]["analysis_failed"] is True
