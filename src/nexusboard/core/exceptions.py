"""Core 异常体系

ValidationError: 任务草稿不合法
TaskIdConflictError: 调用方指定的 task_id 已在看板上
NotFoundError: 操作引用的 ID 不存在于 Store
NotPersistedError: Store 写入失败
EnrichmentInProgressError: 同一任务已有进行中的 AI 分析
"""


class BoardError(Exception):
    """Core 包基础异常"""


class ValidationError(BoardError):
    """任务草稿校验失败"""

    def __init__(self, message: str, errors: list | None = None) -> None:
        """
        Args:
            message: 错误描述
            errors: 字段级错误明细（pydantic errors() 格式）
        """
        super().__init__(message)
        self.errors = errors or []


class TaskIdConflictError(ValidationError):
    """调用方指定的 task_id 已存在"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task_id 已存在: {task_id}")
        self.task_id = task_id


class NotFoundError(BoardError):
    """引用的记录不存在"""

    def __init__(self, entity_id: str, entity: str = "Task") -> None:
        super().__init__(f"{entity} 不存在: {entity_id}")
        self.entity_id = entity_id
        self.entity = entity


class NotPersistedError(BoardError):
    """Store 写入失败（I/O 错误、约束冲突等）"""

    def __init__(self, entity_id: str, original_error: Exception | None = None) -> None:
        """
        Args:
            entity_id: 写入失败的记录 ID
            original_error: 原始异常
        """
        super().__init__(f"记录写入失败: {entity_id} -- {original_error}")
        self.entity_id = entity_id
        self.original_error = original_error


class EnrichmentInProgressError(BoardError):
    """同一任务已有进行中的 AI 分析，拒绝重复调度"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"任务 AI 分析进行中: {task_id}")
        self.task_id = task_id
