"""ContentProvider -- 生成式内容服务

对任务生成执行计划、验收标准、解决方案草稿、学习资源推荐，
对 URL / 文件生成知识卡片分析，以及任务草稿、任务助手对话与周报洞察。

模型输出一律视为不可信文本：先经 extract_json_payload 提取，
再用 pydantic 校验；任一步失败抛出 ResponseParseError。
每个方法独立失败，调用方（AnalysisAggregator / KnowledgeService）决定降级策略。
"""

import base64
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from nexusboard.core.models import (
    AIStatus,
    Chapter,
    LearningResource,
    Priority,
    ResourceFile,
    ResourceLevel,
    ResourceType,
    Task,
    TaskDraft,
    TaskStatus,
)
from nexusboard.provider import ProviderError, ResponseParseError, extract_json_payload

from . import prompts
from .llm_service import LLMService

log = structlog.get_logger()

INSIGHT_UNAVAILABLE = "AI insight is currently unavailable."
INSIGHT_EMPTY = "Unable to generate an insight for this board."

_CLOSED_STATUSES = {TaskStatus.DONE, TaskStatus.CANCELLED, TaskStatus.ARCHIVED}


class PlanStep(BaseModel):
    """执行计划步骤（ID 由 Aggregator 分配）"""

    title: str


class ResourceAnalysis(BaseModel):
    """单个知识资源的分析结果"""

    title: str
    summary: str
    tags: list[str] = Field(default_factory=list)
    difficulty: ResourceLevel | None = None
    key_points: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_points", "keyPoints"),
    )
    chapters: list[Chapter] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: Any) -> Any:
        # 未知难度视为未提供
        if isinstance(value, str):
            for level in ResourceLevel:
                if value.strip().lower() == level.value.lower():
                    return level
        return None


_PLAN_ADAPTER = TypeAdapter(list[PlanStep])
_CRITERIA_ADAPTER = TypeAdapter(list[str])
_RESOURCES_ADAPTER = TypeAdapter(list[LearningResource])


def _validate(adapter: TypeAdapter, payload: Any, purpose: str) -> Any:
    try:
        return adapter.validate_python(payload)
    except PydanticValidationError as e:
        raise ResponseParseError(purpose, f"{e.error_count()} 个字段校验失败") from e


def _normalize_priority(value: Any) -> Priority:
    if isinstance(value, str) and value.strip().upper() in Priority.__members__:
        return Priority[value.strip().upper()]
    return Priority.MEDIUM


def _unwrap_list(payload: Any, key: str, purpose: str) -> Any:
    """取出 {key: [...]} 中的数组；裸数组原样返回

    字段名不符时，仅有一个数组字段的对象也视为包装。
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        if key in payload:
            return payload[key]
        arrays = [value for value in payload.values() if isinstance(value, list)]
        if len(arrays) == 1:
            return arrays[0]
    raise ResponseParseError(purpose, f"响应中缺少 {key} 数组")


def _narrow_resource_payload(payload: Any, purpose: str) -> dict:
    """数组响应收窄为单个对象：优先取同时带 title 与 summary 的条目"""
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, list):
        candidates = [item for item in payload if isinstance(item, dict)]
        for item in candidates:
            if item.get("title") and item.get("summary"):
                return item
        if candidates:
            return candidates[0]
    raise ResponseParseError(purpose, "响应不是 JSON 对象")


class ContentProvider:
    """生成式内容服务 -- 基于 LLMService"""

    def __init__(self, llm_service: LLMService) -> None:
        self._llm = llm_service

    async def _complete(
        self,
        prompt_or_messages: str | list[dict[str, Any]],
        model_alias: str,
        purpose: str,
        json_mode: bool = False,
    ) -> str:
        result = await self._llm.call(
            prompt_or_messages,
            model_alias=model_alias,
            purpose=purpose,
            json_mode=json_mode,
        )
        return result.content

    async def _complete_json(
        self,
        prompt_or_messages: str | list[dict[str, Any]],
        model_alias: str,
        purpose: str,
    ) -> Any:
        content = await self._complete(prompt_or_messages, model_alias, purpose, json_mode=True)
        return extract_json_payload(content, purpose)

    async def _complete_list(
        self,
        prompt: str,
        model_alias: str,
        purpose: str,
        key: str,
    ) -> Any:
        payload = await self._complete_json(prompt, model_alias, purpose)
        return _unwrap_list(payload, key, purpose)

    # ------------------------------------------------------------
    # 任务分析
    # ------------------------------------------------------------

    async def generate_execution_plan(self, task: Task) -> list[PlanStep]:
        """生成执行计划步骤"""
        payload = await self._complete_list(
            prompts.execution_plan(task), "planner", "execution_plan", "steps"
        )
        if isinstance(payload, list):
            # 兼容纯字符串数组
            payload = [{"title": s} if isinstance(s, str) else s for s in payload]
        return _validate(_PLAN_ADAPTER, payload, "execution_plan")

    async def generate_acceptance_criteria(self, task: Task) -> list[str]:
        """生成验收标准文本列表"""
        payload = await self._complete_list(
            prompts.acceptance_criteria(task), "reviewer", "acceptance_criteria", "criteria"
        )
        return _validate(_CRITERIA_ADAPTER, payload, "acceptance_criteria")

    async def generate_solution_draft(self, task: Task) -> str:
        """生成 Markdown 解决方案草稿"""
        return await self._complete(prompts.solution_draft(task), "solver", "solution_draft")

    async def recommend_resources(self, task: Task) -> list[LearningResource]:
        """推荐学习资源"""
        payload = await self._complete_list(
            prompts.learning_resources(task), "curator", "learning_resources", "resources"
        )
        return _validate(_RESOURCES_ADAPTER, payload, "learning_resources")

    # ------------------------------------------------------------
    # 知识资源分析
    # ------------------------------------------------------------

    async def analyze_resource(
        self,
        source: str | ResourceFile,
        content_type: ResourceType,
    ) -> ResourceAnalysis:
        """分析单个 URL 或文件

        URL: 先调研再格式化为 JSON；任一步失败时改用一次性直接分析。
        文件: 以内联 data part 随 prompt 发送。

        Raises:
            ProviderError: 调用失败或响应无法解析
        """
        if isinstance(source, ResourceFile):
            payload = await self._complete_json(
                self._file_messages(source), "extractor", "resource_file"
            )
            purpose = "resource_file"
        else:
            try:
                research = await self._complete(
                    prompts.resource_research(source), "researcher", "resource_research"
                )
                if not research.strip():
                    raise ResponseParseError("resource_research", "调研结果为空")
                payload = await self._complete_json(
                    prompts.resource_format(research), "extractor", "resource_analysis"
                )
                purpose = "resource_analysis"
            except ProviderError as e:
                log.warning(
                    "resource_research_failed_trying_direct",
                    url=source,
                    error_type=type(e).__name__,
                )
                payload = await self._complete_json(
                    prompts.resource_direct(source, content_type.value),
                    "extractor",
                    "resource_direct",
                )
                purpose = "resource_direct"

        item = _narrow_resource_payload(payload, purpose)
        try:
            return ResourceAnalysis.model_validate(item)
        except PydanticValidationError as e:
            raise ResponseParseError(purpose, f"{e.error_count()} 个字段校验失败") from e

    @staticmethod
    def _file_messages(file: ResourceFile) -> list[dict[str, Any]]:
        encoded = base64.b64encode(file.content).decode("ascii")
        return [
            {
                "role": "user",
                "content": [
                    {
                        "type": "file",
                        "file": {
                            "filename": file.file_name,
                            "file_data": f"data:{file.mime_type};base64,{encoded}",
                        },
                    },
                    {"type": "text", "text": prompts.resource_file(file.file_name)},
                ],
            }
        ]

    # ------------------------------------------------------------
    # 草稿 / 对话 / 洞察
    # ------------------------------------------------------------

    async def draft_tasks(self, raw_input: str) -> list[TaskDraft]:
        """将原始需求改写为三种风格的任务草稿

        Raises:
            ProviderError: 响应不是数组或调用失败
        """
        payload = await self._complete_list(
            prompts.draft_tasks(raw_input), "drafter", "task_drafts", "drafts"
        )
        if not isinstance(payload, list):
            raise ResponseParseError("task_drafts", "drafts 不是数组")

        drafts: list[TaskDraft] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            title = str(item.get("title") or "").strip() or "New request"
            drafts.append(
                TaskDraft(
                    title=title,
                    description=str(item.get("description") or ""),
                    product=str(item.get("product") or "General"),
                    type=str(item.get("type") or "Other"),
                    priority=_normalize_priority(item.get("priority")),
                    style_tag=item.get("style_tag") or item.get("styleTag"),
                )
            )
        return drafts

    async def chat_with_guide(
        self,
        history: list[dict[str, str]],
        message: str,
        task: Task,
    ) -> str:
        """任务范围内的助手对话

        Args:
            history: 既往对话 [{"role": "user"|"assistant", "content": "..."}]
            message: 本轮用户消息
            task: 对话所围绕的任务
        """
        messages = [
            {"role": "system", "content": prompts.guide_system(task)},
            {"role": "assistant", "content": prompts.GUIDE_ACK},
            *history,
            {"role": "user", "content": message},
        ]
        return await self._complete(messages, "guide", "chat")

    async def weekly_insight(self, tasks: list[Task]) -> str:
        """根据看板统计生成周报洞察，任何调用失败都返回固定文本"""
        stats = board_stats(tasks)
        open_titles = [t.title for t in tasks if t.status not in _CLOSED_STATUSES][:20]
        try:
            content = await self._complete(
                prompts.weekly_insight(stats, open_titles), "insight", "insight"
            )
        except ProviderError as e:
            log.warning("weekly_insight_failed", error_type=type(e).__name__)
            return INSIGHT_UNAVAILABLE
        return content.strip() or INSIGHT_EMPTY


def board_stats(tasks: list[Task], now: datetime | None = None) -> dict:
    """看板统计：按状态、优先级计数，逾期与 AI 失败数量"""
    now = now or datetime.now(UTC)
    by_status = {s.value: 0 for s in TaskStatus}
    by_priority = {p.value: 0 for p in Priority}
    overdue = 0
    ai_failed = 0
    for task in tasks:
        by_status[task.status.value] += 1
        by_priority[task.priority.value] += 1
        due = task.due_date if task.due_date.tzinfo else task.due_date.replace(tzinfo=UTC)
        if task.status not in _CLOSED_STATUSES and due < now:
            overdue += 1
        if task.ai_status == AIStatus.FAILED:
            ai_failed += 1
    return {
        "total": len(tasks),
        "by_status": by_status,
        "by_priority": by_priority,
        "overdue": overdue,
        "ai_failed": ai_failed,
    }
