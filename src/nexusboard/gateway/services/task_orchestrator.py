"""TaskOrchestrator -- 任务生命周期与后台 AI 分析编排

职责：
1. 持有看板内存状态（BoardState），对外只通过本类的操作暴露
2. 乐观更新：先改内存，再写 Store；写入失败时从 Store 全量重载并重新抛出
3. 创建任务后以 asyncio.create_task 启动后台 AI 分析（不阻塞返回）
4. 分析结果在扇入完成后合并回“当前”内存副本；任务已被删除时丢弃结果
5. 在途任务注册表保证同一 task_id 同时至多一个分析任务

内存状态不加锁：所有修改发生在事件循环的挂起点之间，乐观修改在首个 await 之前完成。
写入确认只合并到当前内存副本，不回退期间其他操作的修改；
延迟到达的分析结果依靠应用前的存在性检查丢弃。
"""

import asyncio
from datetime import UTC, datetime

import structlog
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from nexusboard.core.config import TITLE_PREVIEW_LENGTH
from nexusboard.core.exceptions import (
    EnrichmentInProgressError,
    NotFoundError,
    NotPersistedError,
    TaskIdConflictError,
    ValidationError,
)
from nexusboard.core.models import (
    AIStatus,
    Task,
    TaskDraft,
    TaskStatus,
    validate_ai_transition,
)
from nexusboard.core.store import TaskStore

from .analysis_aggregator import AnalysisAggregator
from .board_events import BoardEvent, BoardEventHub
from .board_state import BoardState

log = structlog.get_logger()


class TaskOrchestrator:
    """任务编排器"""

    def __init__(
        self,
        task_store: TaskStore,
        aggregator: AnalysisAggregator,
        event_hub: BoardEventHub | None = None,
    ) -> None:
        self._store = task_store
        self._aggregator = aggregator
        self._event_hub = event_hub
        self._board = BoardState()
        self._jobs: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------

    async def load(self) -> list[Task]:
        """从 Store 全量同步内存状态"""
        tasks = await self._store.list_tasks()
        self._board.reset(tasks)
        log.info("board_loaded", task_count=len(tasks))
        return self._board.snapshot()

    def list_tasks(self, status: TaskStatus | None = None) -> list[Task]:
        tasks = self._board.snapshot()
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        return tasks

    def get_task(self, task_id: str) -> Task | None:
        return self._board.get(task_id)

    def is_enriching(self, task_id: str) -> bool:
        """是否有在途的 AI 分析任务"""
        return task_id in self._jobs

    # ------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------

    async def create_task(self, draft: TaskDraft | dict) -> Task:
        """创建任务并启动后台 AI 分析

        Raises:
            ValidationError: 草稿不合法
            TaskIdConflictError: task_id 已在看板上
            NotPersistedError: Store 写入失败（乐观条目已移除，不启动分析）
        """
        if not isinstance(draft, TaskDraft):
            try:
                draft = TaskDraft.model_validate(draft)
            except PydanticValidationError as e:
                raise ValidationError(
                    "任务草稿不合法",
                    errors=e.errors(include_url=False, include_context=False),
                ) from e

        task_id = draft.task_id or str(ULID())
        if self._board.contains(task_id):
            raise TaskIdConflictError(task_id)

        now = datetime.now(UTC)
        # PENDING -> PROCESSING 在首次写入前完成
        task = draft.to_task(task_id, now, AIStatus.PROCESSING)

        self._board.add(task)
        try:
            await self._store.create_task(task)
        except Exception as e:
            self._board.remove(task_id)
            log.error(
                "task_create_failed",
                task_id=task_id,
                error_type=type(e).__name__,
            )
            raise

        log.info(
            "task_created",
            task_id=task_id,
            title=task.title[:TITLE_PREVIEW_LENGTH],
        )
        self._publish("task_created", task)
        self._schedule_enrichment(task)
        return task

    async def update_task(self, task: Task) -> Task:
        """整体替换任务

        ai_status、ai_analysis 与 created_at 只由编排器维护，沿用内存中的当前值；
        调用方基于旧副本提交时不会抹掉已完成的分析。

        Raises:
            NotFoundError: Store 中不存在该任务（已全量重载）
            NotPersistedError: 写入失败（已全量重载）
        """
        current = self._board.get(task.task_id)
        if current is not None:
            task = task.model_copy(
                update={
                    "ai_status": current.ai_status,
                    "ai_analysis": current.ai_analysis,
                    "created_at": current.created_at,
                }
            )
            self._board.replace(task)

        try:
            saved = await self._store.update_task(task)
            current = self._board.get(task.task_id)
            if current is not None and (
                current.ai_status != task.ai_status or current.ai_analysis != task.ai_analysis
            ):
                # 写入期间分析结果已先落库，整行写入把 AI 列覆盖回旧值
                await self._store.update_analysis(
                    task.task_id,
                    current.ai_status,
                    current.ai_analysis,
                    subtasks=current.subtasks,
                )
        except (NotFoundError, NotPersistedError) as e:
            log.warning(
                "task_update_failed",
                task_id=task.task_id,
                error_type=type(e).__name__,
            )
            await self._resync("update_task")
            raise

        current = self._board.get(task.task_id)
        if current is None:
            return saved
        confirmed = current.model_copy(update={"updated_at": saved.updated_at})
        self._board.replace(confirmed)
        self._publish("task_updated", confirmed)
        return confirmed

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """仅更新看板列状态；与当前状态相同时为 no-op

        Raises:
            NotFoundError / NotPersistedError: 同 update_task
        """
        current = self._board.get(task_id)
        if current is not None:
            if current.status == status:
                return current
            self._board.replace(current.model_copy(update={"status": status}))

        try:
            saved = await self._store.update_status(task_id, status)
        except (NotFoundError, NotPersistedError) as e:
            log.warning(
                "task_status_update_failed",
                task_id=task_id,
                status=status.value,
                error_type=type(e).__name__,
            )
            await self._resync("update_status")
            raise

        # 只确认时间戳，写入期间的后续修改以内存为准
        current = self._board.get(task_id)
        if current is None:
            return saved
        confirmed = current.model_copy(update={"updated_at": saved.updated_at})
        self._board.replace(confirmed)
        self._publish("task_updated", confirmed)
        return confirmed

    async def delete_task(self, task_id: str) -> None:
        """删除任务（包括分析进行中的任务）

        Raises:
            NotPersistedError: 删除失败（已全量重载）
        """
        removed = self._board.remove(task_id)
        try:
            await self._store.delete_task(task_id)
        except NotPersistedError as e:
            log.warning(
                "task_delete_failed",
                task_id=task_id,
                error_type=type(e).__name__,
            )
            await self._resync("delete_task")
            raise

        if removed is not None:
            log.info("task_deleted", task_id=task_id)
            self._publish("task_deleted", task_id=task_id)

    async def retry_enrichment(self, task_id: str) -> Task:
        """重新执行完整 AI 分析（仅 COMPLETED / FAILED 状态）

        Raises:
            NotFoundError: 看板上不存在该任务
            EnrichmentInProgressError: 已有在途分析或状态不允许重跑
            NotPersistedError: 状态写入失败（已全量重载）
        """
        current = self._board.get(task_id)
        if current is None:
            raise NotFoundError(task_id)
        if task_id in self._jobs or not validate_ai_transition(
            current.ai_status, AIStatus.PROCESSING
        ):
            raise EnrichmentInProgressError(task_id)

        # 同步置为 PROCESSING，随后的并发重试会被上面的检查拒绝
        self._board.replace(current.model_copy(update={"ai_status": AIStatus.PROCESSING}))

        try:
            saved = await self._store.update_ai_status(task_id, AIStatus.PROCESSING)
        except (NotFoundError, NotPersistedError) as e:
            log.warning(
                "enrichment_retry_failed",
                task_id=task_id,
                error_type=type(e).__name__,
            )
            await self._resync("retry_enrichment")
            raise

        current = self._board.get(task_id)
        if current is None:
            return saved
        processing = current.model_copy(
            update={"ai_status": AIStatus.PROCESSING, "updated_at": saved.updated_at}
        )
        self._board.replace(processing)

        log.info("enrichment_retry_scheduled", task_id=task_id)
        self._publish("task_updated", processing)
        self._schedule_enrichment(processing)
        return processing

    # ------------------------------------------------------------
    # 后台 AI 分析
    # ------------------------------------------------------------

    def _schedule_enrichment(self, task: Task) -> asyncio.Task:
        task_id = task.task_id
        job = asyncio.create_task(
            self._run_enrichment(task),
            name=f"enrichment-{task_id}",
        )
        self._jobs[task_id] = job
        job.add_done_callback(lambda j: self._forget_job(task_id, j))
        return job

    def _forget_job(self, task_id: str, job: asyncio.Task) -> None:
        if self._jobs.get(task_id) is job:
            del self._jobs[task_id]

    async def _run_enrichment(self, task: Task) -> None:
        """后台分析：聚合 -> 合并 -> 持久化 -> 存在性检查后应用"""
        task_id = task.task_id
        try:
            analysis = await self._aggregator.analyze(task)
        except Exception as e:
            await self._mark_failed(task_id, e)
            return

        if not self._board.contains(task_id):
            log.info("enrichment_discarded", task_id=task_id, phase="fan_in")
            return

        # 执行计划为空时保留原有子任务
        plan = [step.model_copy() for step in analysis.execution_plan] or None
        try:
            saved = await self._store.update_analysis(
                task_id, AIStatus.COMPLETED, analysis, subtasks=plan
            )
        except NotFoundError:
            log.info("enrichment_discarded", task_id=task_id, phase="persist")
            return
        except Exception as e:
            await self._mark_failed(task_id, e)
            return

        # 合并到写入完成时的内存副本，保留期间的状态变更与编辑
        current = self._board.get(task_id)
        if current is None:
            log.info("enrichment_discarded", task_id=task_id, phase="apply")
            return
        update: dict = {
            "ai_analysis": analysis,
            "ai_status": AIStatus.COMPLETED,
            "updated_at": saved.updated_at,
        }
        if plan is not None:
            update["subtasks"] = plan
        completed = current.model_copy(update=update)
        self._board.replace(completed)

        log.info(
            "enrichment_completed",
            task_id=task_id,
            plan_steps=len(analysis.execution_plan),
        )
        self._publish("enrichment_completed", completed)

    async def _mark_failed(self, task_id: str, error: Exception) -> None:
        """记录分析失败：仅写 ai_status 列，并在存在性检查后更新内存

        FAILED 写入本身失败时仍将内存副本标记为 FAILED，看板不会一直停留在处理中。
        """
        log.error(
            "enrichment_failed",
            task_id=task_id,
            error_type=type(error).__name__,
        )
        if not self._board.contains(task_id):
            log.info("enrichment_discarded", task_id=task_id, phase="failure")
            return

        updated_at = None
        try:
            saved = await self._store.update_ai_status(task_id, AIStatus.FAILED)
            updated_at = saved.updated_at
        except NotFoundError:
            log.info("enrichment_discarded", task_id=task_id, phase="failure")
            return
        except Exception as inner_e:
            log.error(
                "enrichment_failure_not_persisted",
                task_id=task_id,
                error_type=type(inner_e).__name__,
            )

        current = self._board.get(task_id)
        if current is None:
            return
        failed = current.model_copy(
            update={
                "ai_status": AIStatus.FAILED,
                "updated_at": updated_at or current.updated_at,
            }
        )
        self._board.replace(failed)
        self._publish("enrichment_failed", failed)

    def recover_interrupted(self) -> int:
        """为上次进程退出时仍处于 PROCESSING 的任务重新启动分析

        Returns:
            重新调度的任务数
        """
        count = 0
        for task in self._board.snapshot():
            if task.ai_status == AIStatus.PROCESSING and task.task_id not in self._jobs:
                self._schedule_enrichment(task)
                count += 1
        if count:
            log.info("interrupted_enrichment_rescheduled", count=count)
        return count

    async def drain(self) -> None:
        """等待所有在途分析完成"""
        while self._jobs:
            await asyncio.gather(*list(self._jobs.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """取消并等待所有在途分析"""
        jobs = list(self._jobs.values())
        for job in jobs:
            job.cancel()
        if jobs:
            await asyncio.gather(*jobs, return_exceptions=True)
        log.info("orchestrator_shutdown", cancelled_jobs=len(jobs))

    # ------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------

    async def _resync(self, reason: str) -> None:
        """写入失败后的全量重载；重载本身失败只记录日志，由调用方抛出原始异常"""
        try:
            tasks = await self.load()
        except Exception as e:
            log.error(
                "board_reload_failed",
                reason=reason,
                error_type=type(e).__name__,
            )
            return
        log.info("board_reloaded", reason=reason, task_count=len(tasks))
        self._publish("board_reloaded", task_count=len(tasks))

    def _publish(
        self,
        event_type: str,
        task: Task | None = None,
        task_id: str | None = None,
        **payload,
    ) -> None:
        if self._event_hub is None:
            return
        if task is not None:
            task_id = task.task_id
            payload["task"] = task.model_dump(mode="json")
        self._event_hub.publish(BoardEvent(type=event_type, task_id=task_id, payload=payload))
