"""tasktrack Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    FINISHED_REMINDER_STATES,
    NotifyAction,
    ReminderOffset,
    ReminderStatus,
)
from .reminder import ScheduledReminder
from .task import Task, TaskDraft, TaskPatch

__all__ = [
    # 枚举
    "NotifyAction",
    "ReminderOffset",
    "ReminderStatus",
    "FINISHED_REMINDER_STATES",
    # Task
    "Task",
    "TaskDraft",
    "TaskPatch",
    # Reminder
    "ScheduledReminder",
]
