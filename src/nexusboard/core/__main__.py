"""CLI 入口模块 -- python -m nexusboard.core <command>

支持的命令：
  list-tasks            打印看板任务列表
  export-tasks [path]   导出全部任务为 JSON 文件
"""

import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

from .config import TITLE_PREVIEW_LENGTH, get_db_path, get_export_dir

_USAGE = """用法: python -m nexusboard.core <command>
命令:
  list-tasks            打印看板任务列表
  export-tasks [path]   导出全部任务为 JSON 文件"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "list-tasks":
        asyncio.run(list_tasks())
    elif command == "export-tasks":
        target = Path(sys.argv[2]) if len(sys.argv) > 2 else None
        asyncio.run(export_tasks(target))
    else:
        print(f"未知命令: {command}")
        print("可用命令: list-tasks, export-tasks")
        sys.exit(1)


async def list_tasks() -> None:
    """按创建顺序打印任务概要"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        tasks = await store_group.task_store.list_tasks()
        for task in tasks:
            title = task.title[:TITLE_PREVIEW_LENGTH]
            print(
                f"{task.task_id}  {task.status.value:<10} "
                f"{task.ai_status.value:<10} {task.priority.value:<6} {title}"
            )
        print(f"共 {len(tasks)} 个任务")
    finally:
        await store_group.conn.close()


async def export_tasks(target: Path | None = None) -> Path:
    """导出全部任务为 JSON 数组

    Args:
        target: 输出文件路径，缺省时写入导出目录并以时间戳命名

    Returns:
        实际写入的文件路径
    """
    from .store import create_store_group

    if target is None:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        target = get_export_dir() / f"tasks-{stamp}.json"
    target.parent.mkdir(parents=True, exist_ok=True)

    store_group = await create_store_group(get_db_path())
    try:
        tasks = await store_group.task_store.list_tasks()
        payload = [task.model_dump(mode="json") for task in tasks]
        target.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        print(f"已导出 {len(tasks)} 个任务到 {target}")
    finally:
        await store_group.conn.close()
    return target


if __name__ == "__main__":
    main()
