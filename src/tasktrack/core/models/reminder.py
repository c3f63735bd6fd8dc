"""ScheduledReminder Domain Model

提醒落盘后可在进程重启时恢复；task_snapshot 为调度时刻的 Task 快照，
触发时以快照内容发送提醒邮件。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from ..time_utils import ensure_utc
from .enums import ReminderOffset, ReminderStatus
from .task import Task


class ScheduledReminder(BaseModel):
    """一次性的截止前提醒"""

    reminder_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="所属任务 ID")
    offset: ReminderOffset = Field(description="相对截止时间的偏移")
    fire_at: datetime = Field(description="触发时间（UTC）")
    status: ReminderStatus = Field(default=ReminderStatus.PENDING, description="当前状态")
    task_snapshot: Task = Field(description="调度时刻的任务快照")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="状态最近一次变更时间")

    @field_validator("fire_at", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)
