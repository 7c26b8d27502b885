"""TaskStore SQLite 实现

tasks 表是看板的唯一事实来源（source of truth），
Orchestrator 在任何 I/O 失败后都从这里全量重载。
写操作失败时回滚并包装为 NotPersistedError。
"""

import json
from datetime import UTC, datetime

import aiosqlite
import structlog

from ..exceptions import NotFoundError, NotPersistedError
from ..models.enums import AIStatus, TaskStatus
from ..models.task import AIAnalysis, Subtask, Task

log = structlog.get_logger()

_COLUMNS = (
    "task_id, title, description, product, type, priority, status, due_date, "
    "assignee_id, requester_id, subtasks, ai_analysis, ai_status, "
    "created_at, updated_at, style_tag"
)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        """查询任务列表，支持按状态筛选，按创建顺序排列"""
        if status:
            cursor = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE status = ? "
                "ORDER BY created_at ASC, rowid ASC",
                (status,),
            )
        else:
            cursor = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM tasks ORDER BY created_at ASC, rowid ASC"
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def create_task(self, task: Task) -> Task:
        """创建任务记录

        Raises:
            NotPersistedError: 写入失败或 task_id 已存在
        """
        await self._write(
            task.task_id,
            f"""
            INSERT INTO tasks ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            self._task_to_params(task),
        )
        return task

    async def update_task(self, task: Task) -> Task:
        """整体替换任务记录，刷新 updated_at

        Raises:
            NotFoundError: task_id 不存在（不产生任何写入）
            NotPersistedError: 写入失败
        """
        updated = task.model_copy(update={"updated_at": datetime.now(UTC)})
        params = self._task_to_params(updated)
        rowcount = await self._write(
            task.task_id,
            """
            UPDATE tasks
            SET title = ?, description = ?, product = ?, type = ?, priority = ?,
                status = ?, due_date = ?, assignee_id = ?, requester_id = ?,
                subtasks = ?, ai_analysis = ?, ai_status = ?, created_at = ?,
                updated_at = ?, style_tag = ?
            WHERE task_id = ?
            """,
            (*params[1:], task.task_id),
        )
        if rowcount == 0:
            raise NotFoundError(task.task_id)
        return updated

    async def delete_task(self, task_id: str) -> None:
        """删除任务，不存在时为 no-op"""
        await self._write(task_id, "DELETE FROM tasks WHERE task_id = ?", (task_id,))

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """仅更新看板状态

        结果等价于读-改-写后 update_task，但只写 status/updated_at 两列，
        不会覆盖并发写入的 AI 分析结果。状态未变化时不写入，返回原记录。
        """
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        if task.status == status:
            return task
        now = datetime.now(UTC)
        rowcount = await self._write(
            task_id,
            "UPDATE tasks SET status = ?, updated_at = ? WHERE task_id = ?",
            (status.value, now.isoformat(), task_id),
        )
        if rowcount == 0:
            raise NotFoundError(task_id)
        return task.model_copy(update={"status": status, "updated_at": now})

    async def update_ai_status(self, task_id: str, ai_status: AIStatus) -> Task:
        """仅写入 ai_status 列，不触碰其他字段

        Raises:
            NotFoundError: task_id 不存在
            NotPersistedError: 写入失败
        """
        rowcount = await self._write(
            task_id,
            "UPDATE tasks SET ai_status = ?, updated_at = ? WHERE task_id = ?",
            (ai_status.value, datetime.now(UTC).isoformat(), task_id),
        )
        if rowcount == 0:
            raise NotFoundError(task_id)
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def update_analysis(
        self,
        task_id: str,
        ai_status: AIStatus,
        ai_analysis: AIAnalysis | None,
        subtasks: list[Subtask] | None = None,
    ) -> Task:
        """只写 AI 分析相关列：ai_status、ai_analysis，subtasks 非 None 时一并写入

        与 update_status 相同按列写入，不覆盖并发写入的看板状态和用户字段。

        Raises:
            NotFoundError: task_id 不存在
            NotPersistedError: 写入失败
        """
        assignments = "ai_status = ?, ai_analysis = ?"
        params: list = [
            ai_status.value,
            ai_analysis.model_dump_json() if ai_analysis else None,
        ]
        if subtasks is not None:
            assignments += ", subtasks = ?"
            params.append(json.dumps([s.model_dump() for s in subtasks], ensure_ascii=False))
        params.extend([datetime.now(UTC).isoformat(), task_id])

        rowcount = await self._write(
            task_id,
            f"UPDATE tasks SET {assignments}, updated_at = ? WHERE task_id = ?",
            tuple(params),
        )
        if rowcount == 0:
            raise NotFoundError(task_id)
        task = await self.get_task(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def _write(self, task_id: str, sql: str, params: tuple) -> int:
        """执行单条写语句并提交，失败时回滚并包装异常

        Returns:
            受影响行数
        """
        try:
            cursor = await self._conn.execute(sql, params)
            await self._conn.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            await self._conn.rollback()
            log.error(
                "task_store_write_failed",
                task_id=task_id,
                error_type=type(e).__name__,
            )
            raise NotPersistedError(task_id, e) from e

    @staticmethod
    def _task_to_params(task: Task) -> tuple:
        """将 Task 模型转换为按 _COLUMNS 排列的参数元组"""
        return (
            task.task_id,
            task.title,
            task.description,
            task.product,
            task.type,
            task.priority.value,
            task.status.value,
            task.due_date.isoformat(),
            task.assignee_id,
            task.requester_id,
            json.dumps(
                [s.model_dump() for s in task.subtasks],
                ensure_ascii=False,
            ),
            task.ai_analysis.model_dump_json() if task.ai_analysis else None,
            task.ai_status.value,
            task.created_at.isoformat(),
            task.updated_at.isoformat(),
            task.style_tag,
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        subtasks_data = json.loads(row[10]) if row[10] else []
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            product=row[3],
            type=row[4],
            priority=row[5],
            status=row[6],
            due_date=datetime.fromisoformat(row[7]),
            assignee_id=row[8],
            requester_id=row[9],
            subtasks=[Subtask(**s) for s in subtasks_data],
            ai_analysis=AIAnalysis.model_validate_json(row[11]) if row[11] else None,
            ai_status=row[12],
            created_at=datetime.fromisoformat(row[13]),
            updated_at=datetime.fromisoformat(row[14]),
            style_tag=row[15],
        )
