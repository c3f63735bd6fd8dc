"""TaskService -- 任务创建/更新/查询/删除业务逻辑

写操作成功持久化后立即返回；通知邮件与提醒调度交由 DeferredDispatcher
在后台执行，请求方不等待其完成，也无从得知其成败。
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, TypeVar

import aiosqlite
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError
from tasktrack.core.exceptions import StoreError, TaskNotFoundError, TaskValidationError
from tasktrack.core.models import NotifyAction, Task, TaskDraft, TaskPatch
from tasktrack.core.store import StoreGroup
from tasktrack.core.store.transaction import (
    commit_new_task,
    commit_task_delete,
    commit_task_patch,
)
from tasktrack.core.time_utils import utc_now
from ulid import ULID

from .dispatcher import DeferredDispatcher

log = structlog.get_logger()

_DATETIME_ADAPTER = TypeAdapter(datetime)

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], payload: dict[str, Any]) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise TaskValidationError.from_pydantic(e) from e


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """将 aiosqlite 异常转换为 StoreError"""
    try:
        yield
    except aiosqlite.Error as e:
        log.error(
            "store_operation_failed",
            operation=operation,
            error_type=type(e).__name__,
        )
        raise StoreError(operation, e) from e


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        notifier=None,
        scheduler=None,
        dispatcher: DeferredDispatcher | None = None,
    ) -> None:
        self._stores = store_group
        self._notifier = notifier
        self._scheduler = scheduler
        self._dispatcher = dispatcher or DeferredDispatcher()

    async def create_task(
        self,
        payload: dict[str, Any],
        file_ref: str | None = None,
    ) -> Task:
        """创建任务

        Args:
            payload: 表单字段（task / priority / dueDate / notes / reminderEmail）
            file_ref: 已落盘附件的公开路径

        Returns:
            已持久化的 Task

        Raises:
            TaskValidationError: 必填字段缺失或格式非法
            StoreError: 持久化失败
        """
        draft = _parse(TaskDraft, payload)
        now = utc_now()
        task = Task(
            task_id=str(ULID()),
            task=draft.task,
            priority=draft.priority,
            due_date=draft.due_date,
            notes=draft.notes,
            file=file_ref,
            reminder_email=draft.reminder_email,
            created_at=now,
            updated_at=now,
        )

        with _store_errors("create_task"):
            await commit_new_task(self._stores.conn, self._stores.task_store, task)

        log.info("task_created", task_id=task.task_id, due_date=task.due_date.isoformat())

        self._defer(
            "task_added_side_effects",
            self._run_side_effects(NotifyAction.ADDED, task, reschedule=True),
            task_id=task.task_id,
        )
        return task

    async def update_task(
        self,
        task_id: str,
        payload: dict[str, Any],
        file_ref: str | None = None,
    ) -> Task:
        """部分更新任务：提供且非空的字段覆盖原值，其余保留

        仅当更新包含 dueDate 时才发送 updated 通知并重新调度提醒。

        Raises:
            TaskValidationError: 字段格式非法
            TaskNotFoundError: 任务不存在
            StoreError: 持久化失败
        """
        patch = _parse(TaskPatch, payload)
        changes = patch.changes()
        if file_ref:
            changes["file"] = file_ref

        with _store_errors("update_task"):
            updated = await commit_task_patch(
                self._stores.conn,
                self._stores.task_store,
                task_id,
                changes,
                utc_now(),
            )

        if updated is None:
            raise TaskNotFoundError(task_id)

        log.info("task_updated", task_id=task_id, fields=sorted(changes))

        if patch.has_due_date:
            self._defer(
                "task_updated_side_effects",
                self._run_side_effects(NotifyAction.UPDATED, updated, reschedule=True),
                task_id=task_id,
            )
        return updated

    async def list_tasks(self) -> list[Task]:
        """查询全部任务（存储自然顺序，不过滤）"""
        with _store_errors("list_tasks"):
            return await self._stores.task_store.list_tasks()

    async def list_tasks_by_due_date(self, value: str) -> list[Task]:
        """查询截止时间与给定时间戳精确相等的任务

        Raises:
            TaskValidationError: 时间戳无法解析
            StoreError: 查询失败
        """
        try:
            due_date = _DATETIME_ADAPTER.validate_python(value)
        except ValidationError as e:
            raise TaskValidationError(f"dueDate: invalid timestamp {value!r}") from e

        with _store_errors("list_tasks_by_due_date"):
            return await self._stores.task_store.list_tasks_by_due_date(due_date)

    async def delete_task(self, task_id: str) -> Task | None:
        """删除任务

        任务不存在时不报错，返回 None；存在时取消其提醒并发送 deleted 通知
        （通知内容为删除前快照）。

        Raises:
            StoreError: 持久化失败
        """
        with _store_errors("delete_task"):
            deleted = await commit_task_delete(
                self._stores.conn,
                self._stores.task_store,
                task_id,
            )

        if deleted is None:
            log.info("task_delete_missing", task_id=task_id)
            return None

        log.info("task_deleted", task_id=task_id)

        self._defer(
            "task_deleted_side_effects",
            self._run_side_effects(NotifyAction.DELETED, deleted, cancel=True),
            task_id=task_id,
        )
        return deleted

    def _defer(self, name: str, coro, **context: Any) -> None:
        if self._notifier is None and self._scheduler is None:
            coro.close()
            return
        self._dispatcher.spawn(name, coro, **context)

    async def _run_side_effects(
        self,
        action: NotifyAction,
        task: Task,
        reschedule: bool = False,
        cancel: bool = False,
    ) -> None:
        """后台执行：取消提醒 / 发送通知 / 调度提醒

        通知失败只记录日志，不影响后续的提醒调度；调度本身的异常
        交由 DeferredDispatcher 记录。
        """
        if cancel and self._scheduler is not None:
            try:
                await self._scheduler.cancel_reminders(task.task_id)
            except Exception as e:
                log.error(
                    "reminder_cancel_failed",
                    task_id=task.task_id,
                    error_type=type(e).__name__,
                )

        if self._notifier is not None:
            try:
                await self._notifier.notify(action, task)
            except Exception as e:
                log.error(
                    "notification_failed",
                    action=action.value,
                    task_id=task.task_id,
                    error_type=type(e).__name__,
                    error=str(e),
                )

        if reschedule and self._scheduler is not None:
            await self._scheduler.schedule_reminders(task)
