"""ReminderStore SQLite 实现

reminders 表记录每个已调度的提醒及其状态，进程重启后据此恢复调度。
状态变更使用带期望状态的条件更新，保证同一提醒最多触发一次。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import ReminderStatus
from ..models.reminder import ScheduledReminder
from ..models.task import Task
from ..time_utils import ensure_utc

_COLUMNS = (
    "reminder_id, task_id, offset_label, fire_at, status, task_snapshot, created_at, updated_at"
)


class SqliteReminderStore:
    """ReminderStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def add_reminder(self, reminder: ScheduledReminder) -> None:
        """写入提醒记录"""
        await self._conn.execute(
            f"INSERT INTO reminders ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                reminder.reminder_id,
                reminder.task_id,
                reminder.offset.value,
                ensure_utc(reminder.fire_at).isoformat(),
                reminder.status.value,
                reminder.task_snapshot.model_dump_json(),
                reminder.created_at.isoformat(),
                reminder.updated_at.isoformat(),
            ),
        )

    async def get_reminder(self, reminder_id: str) -> ScheduledReminder | None:
        """根据 reminder_id 查询提醒"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE reminder_id = ?",
            (reminder_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_reminder(row)

    async def list_reminders(
        self,
        status: str | None = None,
        task_id: str | None = None,
    ) -> list[ScheduledReminder]:
        """查询提醒列表，支持按状态 / 任务筛选，按 fire_at 升序"""
        clauses = []
        params: list[str] = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if task_id:
            clauses.append("task_id = ?")
            params.append(task_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminders{where} ORDER BY fire_at ASC",
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_reminder(row) for row in rows]

    async def cancel_pending_for_task(self, task_id: str, updated_at: datetime) -> list[str]:
        """将任务的全部 pending 提醒置为 cancelled

        Returns:
            被取消的 reminder_id 列表
        """
        cursor = await self._conn.execute(
            """
            UPDATE reminders
            SET status = ?, updated_at = ?
            WHERE task_id = ? AND status = ?
            RETURNING reminder_id
            """,
            (
                ReminderStatus.CANCELLED.value,
                ensure_utc(updated_at).isoformat(),
                task_id,
                ReminderStatus.PENDING.value,
            ),
        )
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def transition_status(
        self,
        reminder_id: str,
        status: ReminderStatus,
        updated_at: datetime,
        expected_status: ReminderStatus = ReminderStatus.PENDING,
    ) -> bool:
        """条件更新提醒状态（仅当当前状态等于 expected_status）

        Returns:
            True 表示本次调用完成了状态变更
        """
        cursor = await self._conn.execute(
            """
            UPDATE reminders
            SET status = ?, updated_at = ?
            WHERE reminder_id = ? AND status = ?
            """,
            (
                status.value,
                ensure_utc(updated_at).isoformat(),
                reminder_id,
                expected_status.value,
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_reminder(row: aiosqlite.Row) -> ScheduledReminder:
        """将数据库行转换为 ScheduledReminder 模型"""
        return ScheduledReminder(
            reminder_id=row[0],
            task_id=row[1],
            offset=row[2],
            fire_at=datetime.fromisoformat(row[3]),
            status=row[4],
            task_snapshot=Task.model_validate_json(row[5]),
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )
