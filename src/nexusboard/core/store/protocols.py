"""Store Protocol 接口定义

定义 TaskStore、KnowledgeStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing），
Orchestrator 只依赖此接口，测试可替换为内存实现。
"""

from typing import Protocol

from ..models.enums import AIStatus, TaskStatus
from ..models.knowledge import KnowledgeResource
from ..models.task import AIAnalysis, Subtask, Task


class TaskStore(Protocol):
    """Task 存储接口 -- 看板的唯一事实来源"""

    async def list_tasks(self, status: str | None = None) -> list[Task]:
        """查询全部任务（按创建顺序），支持按状态筛选"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def create_task(self, task: Task) -> Task:
        """创建任务记录

        Raises:
            NotPersistedError: 写入失败或 ID 冲突
        """
        ...

    async def update_task(self, task: Task) -> Task:
        """整体替换任务记录

        Raises:
            NotFoundError: task_id 不存在
            NotPersistedError: 写入失败
        """
        ...

    async def delete_task(self, task_id: str) -> None:
        """删除任务（不存在时为 no-op）"""
        ...

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        """仅更新看板状态（效果等价于读-改-写，只写 status 列）"""
        ...

    async def update_ai_status(self, task_id: str, ai_status: AIStatus) -> Task:
        """仅写入 ai_status 列"""
        ...

    async def update_analysis(
        self,
        task_id: str,
        ai_status: AIStatus,
        ai_analysis: AIAnalysis | None,
        subtasks: list[Subtask] | None = None,
    ) -> Task:
        """仅写入 AI 分析相关列（subtasks 为 None 时不写）"""
        ...


class KnowledgeStore(Protocol):
    """知识资源存储接口"""

    async def list_resources(self) -> list[KnowledgeResource]:
        """查询全部资源（最新在前）"""
        ...

    async def get_resource(self, resource_id: str) -> KnowledgeResource | None:
        """根据 resource_id 查询资源"""
        ...

    async def create_resource(self, resource: KnowledgeResource) -> KnowledgeResource:
        """创建资源记录"""
        ...

    async def update_resource(self, resource: KnowledgeResource) -> KnowledgeResource:
        """整体替换资源记录"""
        ...

    async def delete_resource(self, resource_id: str) -> None:
        """删除资源（不存在时为 no-op）"""
        ...
