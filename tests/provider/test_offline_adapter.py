"""OfflineMessageAdapter 单元测试"""

import json

import pytest
from nexusboard.provider.offline_adapter import OfflineMessageAdapter


@pytest.fixture
def adapter():
    return OfflineMessageAdapter()


def _user(text: str) -> list[dict]:
    return [{"role": "user", "content": text}]


class TestOfflineMessageAdapter:
    async def test_execution_plan_json(self, adapter):
        result = await adapter.complete(_user("plan"), purpose="execution_plan")
        steps = json.loads(result.content)["steps"]
        assert len(steps) == 3
        assert all("title" in step for step in steps)
        assert result.provider == "offline"
        assert result.purpose == "execution_plan"

    async def test_acceptance_criteria(self, adapter):
        result = await adapter.complete(_user("x"), purpose="acceptance_criteria")
        assert len(json.loads(result.content)["criteria"]) == 2

    async def test_resource_analysis(self, adapter):
        result = await adapter.complete(_user("x"), purpose="resource_direct")
        payload = json.loads(result.content)
        assert payload["difficulty"] == "Intermediate"

    async def test_task_drafts_use_last_line(self, adapter):
        result = await adapter.complete(
            _user("Rewrite this request:\nFix the login page"), purpose="task_drafts"
        )
        drafts = json.loads(result.content)["drafts"]
        assert [d["style_tag"] for d in drafts] == ["Concise", "Detailed", "Exploratory"]
        assert drafts[0]["title"] == "[Concise] Fix the login page"
        assert [d["priority"] for d in drafts] == ["HIGH", "MEDIUM", "LOW"]

    async def test_unknown_purpose_echoes(self, adapter):
        result = await adapter.complete(_user("hello"), purpose="chat")
        assert result.content == "Offline: hello"

    async def test_multimodal_text_parts(self, adapter):
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "describe"},
                    {"type": "file", "file": {"file_data": "data:video/mp4;base64,AA=="}},
                ],
            }
        ]
        result = await adapter.complete(messages)
        assert result.content == "Offline: describe"

    async def test_token_usage(self, adapter):
        result = await adapter.complete(_user("one two three"))
        usage = result.token_usage
        assert usage.prompt_tokens == 3
        assert usage.total_tokens == usage.prompt_tokens + usage.completion_tokens
