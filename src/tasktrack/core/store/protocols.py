"""Store Protocol 接口定义

定义 TaskStore、ReminderStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.enums import ReminderStatus
from ..models.reminder import ScheduledReminder
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self) -> list[Task]:
        """查询全部任务（存储自然顺序）"""
        ...

    async def list_tasks_by_due_date(self, due_date: datetime) -> list[Task]:
        """按截止时间精确匹配查询"""
        ...

    async def update_task(
        self,
        task_id: str,
        changes: dict[str, Any],
        updated_at: datetime,
    ) -> Task | None:
        """原子部分更新，任务不存在返回 None"""
        ...

    async def delete_task(self, task_id: str) -> Task | None:
        """原子删除，返回删除前快照"""
        ...


class ReminderStore(Protocol):
    """ScheduledReminder 存储接口"""

    async def add_reminder(self, reminder: ScheduledReminder) -> None:
        """写入提醒记录"""
        ...

    async def get_reminder(self, reminder_id: str) -> ScheduledReminder | None:
        """根据 reminder_id 查询提醒"""
        ...

    async def list_reminders(
        self,
        status: str | None = None,
        task_id: str | None = None,
    ) -> list[ScheduledReminder]:
        """查询提醒列表"""
        ...

    async def cancel_pending_for_task(self, task_id: str, updated_at: datetime) -> list[str]:
        """取消任务的全部 pending 提醒"""
        ...

    async def transition_status(
        self,
        reminder_id: str,
        status: ReminderStatus,
        updated_at: datetime,
        expected_status: ReminderStatus = ReminderStatus.PENDING,
    ) -> bool:
        """条件更新提醒状态"""
        ...
