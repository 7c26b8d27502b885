"""Task Domain Model

Task 拥有 subtasks 与 ai_analysis，二者不跨任务共享。
ai_analysis 每次成功分析后整体替换，从不按字段合并。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from .enums import AIStatus, Priority, TaskStatus


class Subtask(BaseModel):
    """子任务（执行计划步骤）"""

    id: str = Field(description="子任务 ID")
    title: str = Field(description="子任务标题")
    completed: bool = Field(default=False, description="是否完成")


class AcceptanceCriterion(BaseModel):
    """验收标准条目"""

    id: str = Field(description="条目 ID")
    content: str = Field(description="验收标准内容")
    checked: bool = Field(default=False, description="是否勾选")


class LearningResource(BaseModel):
    """推荐学习资源"""

    title: str
    url: str
    description: str | None = None


class AIAnalysis(BaseModel):
    """AI 分析结果 -- 聚合值对象，整体替换"""

    execution_plan: list[Subtask] = Field(default_factory=list, description="执行计划")
    acceptance_criteria: list[AcceptanceCriterion] = Field(
        default_factory=list,
        description="验收标准",
    )
    solution_draft: str = Field(default="", description="解决方案草稿（Markdown）")
    learning_resources: list[LearningResource] = Field(
        default_factory=list,
        description="推荐学习资源",
    )
    last_updated: datetime = Field(description="分析完成时间")


class Task(BaseModel):
    """Task 数据模型

    created_at/updated_at 由 Orchestrator 和 Store 维护，
    Content Provider 永远不会写入这两个字段。
    """

    task_id: str = Field(description="唯一标识，生成时为 ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    product: str = Field(default="", description="所属产品")
    type: str = Field(default="", description="任务类型")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.REQUESTED, description="看板列状态")
    due_date: datetime = Field(description="截止时间")
    assignee_id: str = Field(default="", description="执行人引用")
    requester_id: str = Field(default="", description="请求人引用")
    subtasks: list[Subtask] = Field(default_factory=list, description="子任务列表")
    ai_analysis: AIAnalysis | None = Field(default=None, description="AI 分析结果")
    ai_status: AIStatus = Field(default=AIStatus.PENDING, description="AI 分析状态")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    style_tag: str | None = Field(default=None, description="AI 草稿风格标签")


class TaskDraft(BaseModel):
    """任务草稿 -- createTask 的输入

    默认值对齐"新建请求"模板。task_id 为空时由 Orchestrator 生成 ULID。
    """

    task_id: str | None = Field(default=None, description="可选的预分配 ID")
    title: str = Field(default="New request", description="任务标题")
    description: str = ""
    product: str = "General"
    type: str = "Other"
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.REQUESTED
    due_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    assignee_id: str = "u1"
    requester_id: str = "u2"
    subtasks: list[Subtask] = Field(default_factory=list)
    style_tag: str | None = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value.strip()

    def to_task(self, task_id: str, now: datetime, ai_status: AIStatus) -> Task:
        """以给定 ID 与时间戳构建 Task"""
        return Task(
            task_id=task_id,
            title=self.title,
            description=self.description,
            product=self.product,
            type=self.type,
            priority=self.priority,
            status=self.status,
            due_date=self.due_date,
            assignee_id=self.assignee_id,
            requester_id=self.requester_id,
            subtasks=list(self.subtasks),
            ai_status=ai_status,
            created_at=now,
            updated_at=now,
            style_tag=self.style_tag,
        )
