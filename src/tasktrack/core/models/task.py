"""Task Domain Model

Task 是系统中唯一的业务实体。对外 JSON 字段沿用表单字段名
（dueDate / reminderEmail），内部属性使用 snake_case。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..time_utils import ensure_utc


def _blank_to_none(value: Any) -> Any:
    """空字符串（含纯空白）视为未提供"""
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Task(BaseModel):
    """已持久化的 Task

    task / priority / dueDate 恒存在；task_id 创建后不再变化。
    """

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(description="唯一标识，ULID 格式")
    task: str = Field(description="任务标题")
    priority: str = Field(description="优先级标签")
    due_date: datetime = Field(alias="dueDate", description="截止时间（UTC）")
    notes: str | None = Field(default=None, description="备注")
    file: str | None = Field(default=None, description="附件的公开访问路径")
    reminder_email: str | None = Field(
        default=None,
        alias="reminderEmail",
        description="通知收件人覆盖",
    )
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def to_json(self) -> dict[str, Any]:
        """序列化为对外 JSON（使用别名字段名）"""
        return self.model_dump(mode="json", by_alias=True)


class TaskDraft(BaseModel):
    """创建任务的输入 -- 校验必填字段"""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    task: str = Field(min_length=1, description="任务标题")
    priority: str = Field(min_length=1, description="优先级标签")
    due_date: datetime = Field(alias="dueDate", description="截止时间")
    notes: str | None = Field(default=None, description="备注")
    reminder_email: str | None = Field(default=None, alias="reminderEmail")

    @field_validator("notes", "reminder_email", mode="before")
    @classmethod
    def _optional_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("due_date")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class TaskPatch(BaseModel):
    """部分更新的输入

    所有字段可选；空字符串视为未提供，对应字段保留原值。
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    task: str | None = None
    priority: str | None = None
    due_date: datetime | None = Field(default=None, alias="dueDate")
    notes: str | None = None
    reminder_email: str | None = Field(default=None, alias="reminderEmail")

    @field_validator("task", "priority", "due_date", "notes", "reminder_email", mode="before")
    @classmethod
    def _optional_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("due_date")
    @classmethod
    def _normalize_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @property
    def has_due_date(self) -> bool:
        return self.due_date is not None

    def changes(self) -> dict[str, Any]:
        """返回实际提供的字段（snake_case 属性名）"""
        return {k: v for k, v in self.model_dump().items() if v is not None}
