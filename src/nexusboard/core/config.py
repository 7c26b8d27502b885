"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、SSE 心跳间隔、知识库占位策略等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("NEXUSBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "NEXUSBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "nexusboard.db"),
    )


def get_export_dir() -> Path:
    """获取任务导出目录"""
    return Path(
        os.environ.get(
            "NEXUSBOARD_EXPORT_DIR",
            str(_get_base_dir() / "exports"),
        )
    )


def knowledge_placeholder_enabled() -> bool:
    """URL 分析失败时是否以占位资源代替错误"""
    value = os.environ.get("NEXUSBOARD_KNOWLEDGE_PLACEHOLDER", "true")
    return value.strip().lower() not in ("0", "false", "no", "off")


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("NEXUSBOARD_SSE_HEARTBEAT_INTERVAL", "15")
)

# 任务标题截断长度（AI prompt 与日志预览）
TITLE_PREVIEW_LENGTH: int = 100
