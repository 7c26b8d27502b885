"""枚举定义 -- 看板状态、优先级、AI 分析状态机、知识资源类型

AIStatus 独立于 TaskStatus 追踪后台 AI 分析生命周期，
VALID_AI_TRANSITIONS 定义其合法流转。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """看板列状态"""

    REQUESTED = "REQUESTED"
    CHECKED = "CHECKED"
    WIP = "WIP"
    SENT = "SENT"
    FEEDBACK = "FEEDBACK"
    DONE = "DONE"
    CANCELLED = "CANCELLED"
    ARCHIVED = "ARCHIVED"


class Priority(StrEnum):
    """任务优先级"""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AIStatus(StrEnum):
    """AI 分析（enrichment）状态"""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# COMPLETED/FAILED -> PROCESSING 仅用于显式的完整重跑
VALID_AI_TRANSITIONS: dict[AIStatus, set[AIStatus]] = {
    AIStatus.PENDING: {AIStatus.PROCESSING},
    AIStatus.PROCESSING: {AIStatus.COMPLETED, AIStatus.FAILED},
    AIStatus.COMPLETED: {AIStatus.PROCESSING},
    AIStatus.FAILED: {AIStatus.PROCESSING},
}

TERMINAL_AI_STATES: set[AIStatus] = {
    AIStatus.COMPLETED,
    AIStatus.FAILED,
}


class ResourceType(StrEnum):
    """知识资源内容类型"""

    VIDEO = "VIDEO"
    ARTICLE = "ARTICLE"
    GUIDE = "GUIDE"


class ResourceLevel(StrEnum):
    """知识资源难度"""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


def validate_ai_transition(from_status: AIStatus, to_status: AIStatus) -> bool:
    """验证 AI 状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_AI_TRANSITIONS.get(from_status, set())
    return to_status in allowed
