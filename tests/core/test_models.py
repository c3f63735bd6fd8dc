"""Domain Model 单元测试

测试内容：
1. TaskDraft 必填字段校验与空白处理
2. TaskPatch 仅收集实际提供的字段
3. Task 对外 JSON 使用 dueDate / reminderEmail 字段名
4. TaskValidationError 错误消息
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError
from tasktrack.core.exceptions import TaskNotFoundError, TaskValidationError
from tasktrack.core.models import (
    FINISHED_REMINDER_STATES,
    NotifyAction,
    ReminderStatus,
    TaskDraft,
    TaskPatch,
)


class TestTaskDraft:
    """创建输入校验"""

    def test_valid_draft_from_form_names(self):
        draft = TaskDraft.model_validate(
            {
                "task": "  Pay rent  ",
                "priority": "high",
                "dueDate": "2026-10-20T10:00:00Z",
                "notes": "landlord",
                "reminderEmail": "me@example.com",
            }
        )
        assert draft.task == "Pay rent"
        assert draft.priority == "high"
        assert draft.due_date == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)
        assert draft.notes == "landlord"
        assert draft.reminder_email == "me@example.com"

    def test_missing_task_rejected(self):
        with pytest.raises(ValidationError):
            TaskDraft.model_validate({"priority": "high", "dueDate": "2026-10-20T10:00:00Z"})

    def test_blank_task_rejected(self):
        """纯空白标题视为缺失"""
        with pytest.raises(ValidationError):
            TaskDraft.model_validate(
                {"task": "   ", "priority": "high", "dueDate": "2026-10-20T10:00:00Z"}
            )

    def test_missing_priority_rejected(self):
        with pytest.raises(ValidationError):
            TaskDraft.model_validate({"task": "x", "dueDate": "2026-10-20T10:00:00Z"})

    def test_malformed_due_date_rejected(self):
        with pytest.raises(ValidationError):
            TaskDraft.model_validate({"task": "x", "priority": "low", "dueDate": "tomorrow"})

    def test_naive_due_date_treated_as_utc(self):
        draft = TaskDraft.model_validate(
            {"task": "x", "priority": "low", "dueDate": "2026-10-20T10:00:00"}
        )
        assert draft.due_date.tzinfo is not None
        assert draft.due_date == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)

    def test_offset_due_date_normalized_to_utc(self):
        draft = TaskDraft.model_validate(
            {"task": "x", "priority": "low", "dueDate": "2026-10-20T12:00:00+02:00"}
        )
        assert draft.due_date == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)
        assert draft.due_date.utcoffset() == timedelta(0)

    def test_blank_optional_fields_become_none(self):
        draft = TaskDraft.model_validate(
            {
                "task": "x",
                "priority": "low",
                "dueDate": "2026-10-20T10:00:00Z",
                "notes": "",
                "reminderEmail": "  ",
            }
        )
        assert draft.notes is None
        assert draft.reminder_email is None


class TestTaskPatch:
    """部分更新输入"""

    def test_only_notes_provided(self):
        patch = TaskPatch.model_validate({"notes": "call first"})
        assert patch.changes() == {"notes": "call first"}
        assert patch.has_due_date is False

    def test_blank_values_are_ignored(self):
        patch = TaskPatch.model_validate({"task": "", "priority": " ", "dueDate": ""})
        assert patch.changes() == {}
        assert patch.has_due_date is False

    def test_due_date_parsed_and_normalized(self):
        patch = TaskPatch.model_validate({"dueDate": "2026-10-21T09:30:00-04:00"})
        assert patch.has_due_date is True
        assert patch.changes()["due_date"] == datetime(2026, 10, 21, 13, 30, tzinfo=UTC)

    def test_malformed_due_date_rejected(self):
        with pytest.raises(ValidationError):
            TaskPatch.model_validate({"dueDate": "not-a-date"})


class TestTask:
    """已持久化 Task"""

    def test_json_uses_form_field_names(self, make_task):
        task = make_task(reminder_email="me@example.com", notes="n")
        data = task.to_json()
        assert data["task_id"] == task.task_id
        assert data["task"] == "Pay rent"
        assert "dueDate" in data
        assert data["reminderEmail"] == "me@example.com"
        assert "due_date" not in data
        assert "reminder_email" not in data

    def test_timestamps_normalized_to_utc(self, make_task):
        tz = timezone(timedelta(hours=8))
        task = make_task(due_date=datetime(2026, 10, 20, 18, 0, tzinfo=tz))
        assert task.due_date == datetime(2026, 10, 20, 10, 0, tzinfo=UTC)
        assert task.due_date.utcoffset() == timedelta(0)

    def test_snapshot_json_roundtrip(self, make_task):
        task = make_task(notes="keep")
        restored = type(task).model_validate_json(task.model_dump_json())
        assert restored == task


class TestEnums:
    def test_notify_action_values(self):
        assert [a.value for a in NotifyAction] == ["added", "updated", "deleted", "reminder"]

    def test_finished_states_exclude_pending(self):
        assert ReminderStatus.PENDING not in FINISHED_REMINDER_STATES
        assert len(FINISHED_REMINDER_STATES) == 3


class TestExceptions:
    def test_validation_error_names_form_field(self):
        with pytest.raises(ValidationError) as exc_info:
            TaskDraft.model_validate({"task": "x", "priority": "low", "dueDate": "nope"})
        error = TaskValidationError.from_pydantic(exc_info.value)
        assert "dueDate" in str(error)

    def test_validation_error_lists_every_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            TaskDraft.model_validate({})
        message = str(TaskValidationError.from_pydantic(exc_info.value))
        assert "task" in message
        assert "priority" in message
        assert "dueDate" in message

    def test_not_found_message(self):
        error = TaskNotFoundError("01ABC")
        assert error.task_id == "01ABC"
        assert str(error) == "Task with id 01ABC does not exist"
