"""提醒时间点计算

候选时间点为截止时间前 24 小时与前 1 小时，
仅保留严格晚于当前时间的候选，两者相互独立判断。
"""

from datetime import datetime

from .config import REMINDER_OFFSETS
from .models.enums import ReminderOffset
from .time_utils import ensure_utc


def compute_reminder_instants(
    due_date: datetime,
    now: datetime,
) -> list[tuple[ReminderOffset, datetime]]:
    """计算仍需调度的提醒时间点

    Args:
        due_date: 任务截止时间
        now: 当前时间

    Returns:
        [(offset, fire_at), ...]，按 fire_at 升序；已过去的候选被丢弃
    """
    due_date = ensure_utc(due_date)
    now = ensure_utc(now)

    instants = []
    for key, delta in REMINDER_OFFSETS.items():
        fire_at = due_date - delta
        if fire_at > now:
            instants.append((ReminderOffset(key), fire_at))

    instants.sort(key=lambda item: item[1])
    return instants
