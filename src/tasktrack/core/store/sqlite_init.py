"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id         TEXT PRIMARY KEY,
    task            TEXT NOT NULL CHECK (length(task) > 0),
    priority        TEXT NOT NULL CHECK (length(priority) > 0),
    due_date        TEXT NOT NULL,
    notes           TEXT,
    file            TEXT,
    reminder_email  TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date);",
]

# reminders 表 DDL（任务删除后提醒行保留为 cancelled，不设外键）
_REMINDERS_DDL = """
CREATE TABLE IF NOT EXISTS reminders (
    reminder_id     TEXT PRIMARY KEY,
    task_id         TEXT NOT NULL,
    offset_label    TEXT NOT NULL,
    fire_at         TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'pending',
    task_snapshot   TEXT NOT NULL DEFAULT '{}',
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_REMINDERS_INDEXES = [
    # 恢复扫描 / 轮询按状态 + 触发时间查询
    "CREATE INDEX IF NOT EXISTS idx_reminders_status_fire_at ON reminders(status, fire_at);",
    # 重新调度时按任务取消 pending 提醒
    "CREATE INDEX IF NOT EXISTS idx_reminders_task_status ON reminders(task_id, status);",
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
    await conn.execute(_REMINDERS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _REMINDERS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
