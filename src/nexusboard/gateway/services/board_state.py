"""BoardState -- 看板的内存状态容器

有序的 task_id -> Task 映射，由 TaskOrchestrator 独占持有。
所有修改发生在事件循环的挂起点之间，无需加锁。
"""

from nexusboard.core.models import Task


class BoardState:
    """看板内存状态（保持插入顺序）"""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def reset(self, tasks: list[Task]) -> None:
        """以 Store 的全量结果替换内存状态"""
        self._tasks = {task.task_id: task for task in tasks}

    def add(self, task: Task) -> None:
        self._tasks[task.task_id] = task

    def replace(self, task: Task) -> bool:
        """替换已存在的任务，不存在时不做任何事

        Returns:
            True 如果发生了替换
        """
        if task.task_id not in self._tasks:
            return False
        self._tasks[task.task_id] = task
        return True

    def remove(self, task_id: str) -> Task | None:
        return self._tasks.pop(task_id, None)

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def contains(self, task_id: str) -> bool:
        return task_id in self._tasks

    def snapshot(self) -> list[Task]:
        """当前任务列表的浅拷贝"""
        return list(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)
