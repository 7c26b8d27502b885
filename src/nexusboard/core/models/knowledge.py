"""KnowledgeResource Domain Model -- 知识库学习卡片

由 URL 或文件经 AI 分析生成：基本信息 + 检索优化 + 管理信息 + 元数据。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ResourceLevel, ResourceType


class Chapter(BaseModel):
    """视频章节 / 文章段落"""

    timestamp: str = Field(default="", description="时间戳，如 00:00")
    title: str
    summary: str | None = None


class BasicInfo(BaseModel):
    """基本信息"""

    title: str
    summary: str = Field(description="三行核心摘要")
    tags: list[str] = Field(default_factory=list, description="自动生成标签")
    level: ResourceLevel = Field(default=ResourceLevel.INTERMEDIATE)
    content_type: ResourceType = Field(default=ResourceType.ARTICLE)
    author: str | None = None


class SearchOptimization(BaseModel):
    """检索优化信息"""

    keywords: list[str] = Field(default_factory=list)
    chapters: list[Chapter] = Field(default_factory=list)


class ManagementInfo(BaseModel):
    """来源管理信息"""

    original_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None


class ResourceMetadata(BaseModel):
    """元数据"""

    uploaded_at: datetime
    duration: int | None = Field(default=None, description="视频时长（秒）")
    analysis_failed: bool = Field(
        default=False,
        description="是否为分析失败后的占位资源",
    )


class KnowledgeResource(BaseModel):
    """知识资源"""

    resource_id: str = Field(description="唯一标识，ULID 格式")
    basic_info: BasicInfo
    search_optimization: SearchOptimization = Field(default_factory=SearchOptimization)
    management_info: ManagementInfo = Field(default_factory=ManagementInfo)
    metadata: ResourceMetadata


class ResourceFile(BaseModel):
    """待分析的上传文件"""

    file_name: str
    mime_type: str = "application/octet-stream"
    content: bytes = Field(repr=False)
