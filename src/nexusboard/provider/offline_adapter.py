"""OfflineMessageAdapter -- 离线模式 messages 接口适配

不访问任何模型，按调用用途（purpose）返回内置样例内容，
输出格式与真实模型一致：JSON 用途返回 JSON mode 下的顶层对象文本。
用于 NEXUSBOARD_LLM_MODE=offline 以及 FallbackManager 的降级后备。
"""

import asyncio
import json
import time
from typing import Any

from .models import ModelCallResult, TokenUsage

_EXECUTION_PLAN = [
    {"title": "Analyze detailed requirements"},
    {"title": "Review and select the technical stack"},
    {"title": "Build a prototype"},
]

_ACCEPTANCE_CRITERIA = [
    "The feature behaves as described in the requirements document",
    "Unit test coverage is at least 80%",
]

_LEARNING_RESOURCES = [
    {
        "title": "Official documentation for the related technology",
        "url": "https://react.dev",
        "description": "Official React documentation.",
    },
    {
        "title": "Best practices guide",
        "url": "https://github.com/goldbergyoni/nodebestpractices",
        "description": "Node.js best practices.",
    },
]

_SOLUTION_DRAFT = """### Proposed solution

The problem can be approached as follows.

1. **Frontend**: structure the UI as components
2. **Backend**: design a RESTful API

```python
# example
solution = "solved"
```"""

_RESOURCE_ANALYSIS = {
    "title": "Offline sample resource",
    "summary": "Sample summary line one.\nSample summary line two.\nSample summary line three.",
    "tags": ["sample", "offline"],
    "difficulty": "Intermediate",
    "key_points": ["Offline mode returns canned analysis"],
    "chapters": [{"timestamp": "00:00", "title": "Introduction"}],
}

_DRAFT_STYLES = [
    ("Concise", "HIGH"),
    ("Detailed", "MEDIUM"),
    ("Exploratory", "LOW"),
]


class OfflineMessageAdapter:
    """离线适配器 -- complete(messages) -> ModelCallResult"""

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model_alias: str = "offline",
        purpose: str = "",
        **kwargs,
    ) -> ModelCallResult:
        """按 purpose 生成样例响应

        未知 purpose 返回 "Offline: {最后一条用户消息}" 形式的回声。
        """
        start_time = time.monotonic()
        user_content = self._extract_last_user_content(messages)

        # 模拟少量延迟，保证调用方真正让出事件循环
        await asyncio.sleep(0.01)

        response_text = self._render(purpose, user_content)
        prompt_tokens = len(user_content.split())
        completion_tokens = len(response_text.split())

        return ModelCallResult(
            content=response_text,
            model_alias=model_alias,
            model_name="offline",
            provider="offline",
            purpose=purpose,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            token_usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
        )

    @staticmethod
    def _render(purpose: str, user_content: str) -> str:
        if purpose == "execution_plan":
            return json.dumps({"steps": _EXECUTION_PLAN})
        if purpose == "acceptance_criteria":
            return json.dumps({"criteria": _ACCEPTANCE_CRITERIA})
        if purpose == "learning_resources":
            return json.dumps({"resources": _LEARNING_RESOURCES})
        if purpose == "solution_draft":
            return _SOLUTION_DRAFT
        if purpose == "resource_research":
            return "Offline research notes: the resource could not be fetched in offline mode."
        if purpose in ("resource_analysis", "resource_direct", "resource_file"):
            return json.dumps(_RESOURCE_ANALYSIS)
        if purpose == "task_drafts":
            request = OfflineMessageAdapter._request_line(user_content)[:80]
            drafts = [
                {
                    "title": f"[{style}] {request or 'New request'}",
                    "description": f"{style} rewrite of the request.",
                    "priority": priority,
                    "product": "General",
                    "type": "Other",
                    "style_tag": style,
                }
                for style, priority in _DRAFT_STYLES
            ]
            return json.dumps({"drafts": drafts})
        if purpose == "insight":
            return "Offline insight: keep the WIP column small and close stale requests."
        return f"Offline: {user_content}"

    @staticmethod
    def _request_line(user_content: str) -> str:
        """取 Request: 标记之后的首个非空行；没有该标记时取最后一行"""
        lines = [line.strip() for line in user_content.splitlines() if line.strip()]
        for i, line in enumerate(lines[:-1]):
            if line == "Request:":
                return lines[i + 1]
        return lines[-1] if lines else ""

    @staticmethod
    def _extract_last_user_content(messages: list[dict[str, Any]]) -> str:
        """提取最后一条 user 消息的文本（多模态 parts 只取 text 部分）"""
        for msg in reversed(messages):
            if msg.get("role") != "user":
                continue
            content = msg.get("content", "")
            if isinstance(content, list):
                return " ".join(
                    part.get("text", "") for part in content if part.get("type") == "text"
                )
            return content
        return "(empty)"
