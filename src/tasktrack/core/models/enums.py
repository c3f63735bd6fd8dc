"""枚举定义

包含通知动作 NotifyAction、提醒偏移 ReminderOffset、提醒状态 ReminderStatus。
"""

from enum import StrEnum


class NotifyAction(StrEnum):
    """通知动作 -- 决定邮件标题与正文中的动作标签"""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    REMINDER = "reminder"


class ReminderOffset(StrEnum):
    """提醒相对截止时间的偏移"""

    DAY_BEFORE = "24h"
    HOUR_BEFORE = "1h"


class ReminderStatus(StrEnum):
    """持久化提醒的状态"""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


# 不再参与调度的提醒状态
FINISHED_REMINDER_STATES: set[ReminderStatus] = {
    ReminderStatus.SENT,
    ReminderStatus.FAILED,
    ReminderStatus.CANCELLED,
}
