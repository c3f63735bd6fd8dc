"""TaskStore SQLite 实现

所有写操作只执行语句不提交，由 transaction 模块统一提交/回滚。
更新与删除各为单条语句（UPDATE/DELETE ... RETURNING），
避免"先查后写"两步之间的并发丢失更新。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.task import Task
from ..time_utils import ensure_utc

_COLUMNS = (
    "task_id, task, priority, due_date, notes, file, reminder_email, created_at, updated_at"
)

# 允许部分更新的列（属性名与列名一致）
_PATCHABLE_COLUMNS = ("task", "priority", "due_date", "notes", "file", "reminder_email")


def due_date_key(value: datetime) -> str:
    """due_date 列的存储形式：UTC ISO 8601 字符串

    写入与按日期精确查询使用同一规范化，保证相等比较成立。
    """
    return ensure_utc(value).isoformat()


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.task_id,
                task.task,
                task.priority,
                due_date_key(task.due_date),
                task.notes,
                task.file,
                task.reminder_email,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self) -> list[Task]:
        """查询全部任务，按插入顺序（存储自然顺序）"""
        cursor = await self._conn.execute(f"SELECT {_COLUMNS} FROM tasks ORDER BY rowid")
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_tasks_by_due_date(self, due_date: datetime) -> list[Task]:
        """查询截止时间与给定值精确相等的任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE due_date = ? ORDER BY rowid",
            (due_date_key(due_date),),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(
        self,
        task_id: str,
        changes: dict[str, Any],
        updated_at: datetime,
    ) -> Task | None:
        """原子部分更新：changes 中出现的列覆盖原值，其余保留

        Args:
            task_id: 任务 ID
            changes: 属性名 -> 新值（None 值视为未提供）
            updated_at: 更新时间

        Returns:
            更新后的 Task；任务不存在返回 None
        """
        assignments = []
        params: list[Any] = []
        for column in _PATCHABLE_COLUMNS:
            value = changes.get(column)
            if value is None:
                continue
            if column == "due_date":
                value = due_date_key(value)
            assignments.append(f"{column} = ?")
            params.append(value)

        assignments.append("updated_at = ?")
        params.append(ensure_utc(updated_at).isoformat())
        params.append(task_id)

        cursor = await self._conn.execute(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ? RETURNING {_COLUMNS}",
            params,
        )
        rows = await cursor.fetchall()
        if not rows:
            return None
        return self._row_to_task(rows[0])

    async def delete_task(self, task_id: str) -> Task | None:
        """原子删除，返回删除前的快照；任务不存在返回 None"""
        cursor = await self._conn.execute(
            f"DELETE FROM tasks WHERE task_id = ? RETURNING {_COLUMNS}",
            (task_id,),
        )
        rows = await cursor.fetchall()
        if not rows:
            return None
        return self._row_to_task(rows[0])

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            task=row[1],
            priority=row[2],
            due_date=datetime.fromisoformat(row[3]),
            notes=row[4],
            file=row[5],
            reminder_email=row[6],
            created_at=datetime.fromisoformat(row[7]),
            updated_at=datetime.fromisoformat(row[8]),
        )
