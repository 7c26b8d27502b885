"""SQLite 数据库初始化

PRAGMA 配置 + tasks / knowledge_resources 两张表 DDL + 索引创建。
嵌套结构（subtasks、ai_analysis、知识卡片各分区）以 JSON 文本列存储。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id      TEXT PRIMARY KEY,
    title        TEXT NOT NULL DEFAULT '',
    description  TEXT NOT NULL DEFAULT '',
    product      TEXT NOT NULL DEFAULT '',
    type         TEXT NOT NULL DEFAULT '',
    priority     TEXT NOT NULL DEFAULT 'MEDIUM',
    status       TEXT NOT NULL DEFAULT 'REQUESTED',
    due_date     TEXT NOT NULL,
    assignee_id  TEXT NOT NULL DEFAULT '',
    requester_id TEXT NOT NULL DEFAULT '',
    subtasks     TEXT NOT NULL DEFAULT '[]',
    ai_analysis  TEXT,
    ai_status    TEXT NOT NULL DEFAULT 'PENDING',
    created_at   TEXT NOT NULL,
    updated_at   TEXT NOT NULL,
    style_tag    TEXT
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at);",
]

# knowledge_resources 表 DDL
_KNOWLEDGE_DDL = """
CREATE TABLE IF NOT EXISTS knowledge_resources (
    resource_id          TEXT PRIMARY KEY,
    basic_info           TEXT NOT NULL DEFAULT '{}',
    search_optimization  TEXT NOT NULL DEFAULT '{}',
    management_info      TEXT NOT NULL DEFAULT '{}',
    metadata             TEXT NOT NULL DEFAULT '{}',
    uploaded_at          TEXT NOT NULL
);
"""

_KNOWLEDGE_INDEXES = [
    (
        "CREATE INDEX IF NOT EXISTS idx_knowledge_uploaded_at "
        "ON knowledge_resources(uploaded_at DESC);"
    ),
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_KNOWLEDGE_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _KNOWLEDGE_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()
