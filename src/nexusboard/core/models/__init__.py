"""NexusBoard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    TERMINAL_AI_STATES,
    VALID_AI_TRANSITIONS,
    AIStatus,
    Priority,
    ResourceLevel,
    ResourceType,
    TaskStatus,
    validate_ai_transition,
)
from .knowledge import (
    BasicInfo,
    Chapter,
    KnowledgeResource,
    ManagementInfo,
    ResourceFile,
    ResourceMetadata,
    SearchOptimization,
)
from .task import (
    AcceptanceCriterion,
    AIAnalysis,
    LearningResource,
    Subtask,
    Task,
    TaskDraft,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "AIStatus",
    "ResourceType",
    "ResourceLevel",
    # AI 状态机
    "VALID_AI_TRANSITIONS",
    "TERMINAL_AI_STATES",
    "validate_ai_transition",
    # Task
    "Task",
    "TaskDraft",
    "Subtask",
    "AcceptanceCriterion",
    "LearningResource",
    "AIAnalysis",
    # Knowledge
    "KnowledgeResource",
    "BasicInfo",
    "Chapter",
    "SearchOptimization",
    "ManagementInfo",
    "ResourceMetadata",
    "ResourceFile",
]
