"""AnalysisAggregator -- 并发扇出 + 合并为 AIAnalysis

四个内容调用（执行计划、验收标准、解决方案草稿、学习资源）并发执行，
任一子调用失败降级为空值并记录日志，不向上传播。
返回值总是结构完整的 AIAnalysis。
"""

import asyncio
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TypeVar

import structlog
from ulid import ULID

from nexusboard.core.models import AcceptanceCriterion, AIAnalysis, Subtask, Task

from .content_provider import ContentProvider

log = structlog.get_logger()

T = TypeVar("T")


class AnalysisAggregator:
    """AI 分析聚合器"""

    def __init__(self, content_provider: ContentProvider) -> None:
        self._provider = content_provider

    async def analyze(self, task: Task) -> AIAnalysis:
        """对任务执行完整 AI 分析（settle-all，不抛出子调用异常）"""
        plan, criteria, draft, resources = await asyncio.gather(
            self._settle(
                task.task_id,
                "execution_plan",
                self._provider.generate_execution_plan(task),
                [],
            ),
            self._settle(
                task.task_id,
                "acceptance_criteria",
                self._provider.generate_acceptance_criteria(task),
                [],
            ),
            self._settle(
                task.task_id,
                "solution_draft",
                self._provider.generate_solution_draft(task),
                "",
            ),
            self._settle(
                task.task_id,
                "learning_resources",
                self._provider.recommend_resources(task),
                [],
            ),
        )

        analysis = AIAnalysis(
            execution_plan=[Subtask(id=str(ULID()), title=step.title) for step in plan],
            acceptance_criteria=[
                AcceptanceCriterion(id=str(ULID()), content=content) for content in criteria
            ],
            solution_draft=draft,
            learning_resources=resources,
            last_updated=datetime.now(UTC),
        )
        log.info(
            "analysis_aggregated",
            task_id=task.task_id,
            plan_steps=len(analysis.execution_plan),
            criteria=len(analysis.acceptance_criteria),
            has_draft=bool(analysis.solution_draft),
            resources=len(analysis.learning_resources),
        )
        return analysis

    @staticmethod
    async def _settle(task_id: str, field: str, call: Awaitable[T], fallback: T) -> T:
        """等待单个子调用，失败时返回 fallback"""
        try:
            return await call
        except Exception as e:
            log.warning(
                "analysis_part_failed",
                task_id=task_id,
                field=field,
                error_type=type(e).__name__,
                error=str(e),
            )
            return fallback
