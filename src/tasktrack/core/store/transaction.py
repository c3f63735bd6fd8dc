"""原子事务封装

每个业务写操作在同一 SQLite 事务内提交；失败时回滚并重新抛出。
"""

from datetime import datetime
from typing import Any

import aiosqlite

from ..models.enums import ReminderStatus
from ..models.reminder import ScheduledReminder
from ..models.task import Task
from .protocols import ReminderStore, TaskStore


async def commit_new_task(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task: Task,
) -> None:
    """写入新任务并提交"""
    try:
        await task_store.create_task(task)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def commit_task_patch(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task_id: str,
    changes: dict[str, Any],
    updated_at: datetime,
) -> Task | None:
    """单语句部分更新并提交

    Returns:
        更新后的 Task；任务不存在返回 None
    """
    try:
        updated = await task_store.update_task(task_id, changes, updated_at)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return updated


async def commit_task_delete(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    task_id: str,
) -> Task | None:
    """单语句删除并提交

    Returns:
        删除前的 Task 快照；任务不存在返回 None
    """
    try:
        deleted = await task_store.delete_task(task_id)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return deleted


async def replace_pending_reminders(
    conn: aiosqlite.Connection,
    reminder_store: ReminderStore,
    task_id: str,
    reminders: list[ScheduledReminder],
    now: datetime,
) -> list[str]:
    """取消任务已有的 pending 提醒并写入新提醒（同一事务）

    Args:
        conn: 数据库连接
        reminder_store: ReminderStore 实例
        task_id: 任务 ID
        reminders: 新的提醒（可为空，即仅取消）
        now: 状态变更时间

    Returns:
        被取消的 reminder_id 列表
    """
    try:
        cancelled = await reminder_store.cancel_pending_for_task(task_id, now)
        for reminder in reminders:
            await reminder_store.add_reminder(reminder)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return cancelled


async def commit_reminder_status(
    conn: aiosqlite.Connection,
    reminder_store: ReminderStore,
    reminder_id: str,
    status: ReminderStatus,
    now: datetime,
    expected_status: ReminderStatus = ReminderStatus.PENDING,
) -> bool:
    """条件更新提醒状态并提交

    Returns:
        True 表示本次调用完成了状态变更
    """
    try:
        changed = await reminder_store.transition_status(
            reminder_id, status, now, expected_status=expected_status
        )
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise
    return changed
