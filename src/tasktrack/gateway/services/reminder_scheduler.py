"""ReminderScheduler -- 截止前提醒的调度、取消与恢复

调度流程：
1. 以调度器时钟计算截止前 24h / 1h 两个候选时间点，丢弃已过去的候选
2. 同一事务内取消该任务已有的 pending 提醒并写入新提醒（携带任务快照）
3. 撤销该任务在内存中的计时器，为每条新提醒启动一个计时器
4. 计时器到点后以条件更新 pending -> sent 认领提醒，再调用 Notifier

每个任务任一时刻只有一组有效提醒；进程重启后 recover() 重新装载 pending 提醒，
已过期的立即触发。发送失败只记录日志并标记 failed，不重试。
"""

import asyncio
import weakref
from collections.abc import Callable
from datetime import datetime

import structlog
from tasktrack.core.models import NotifyAction, ReminderStatus, ScheduledReminder, Task
from tasktrack.core.reminders import compute_reminder_instants
from tasktrack.core.store import StoreGroup
from tasktrack.core.store.transaction import (
    commit_reminder_status,
    replace_pending_reminders,
)
from tasktrack.core.time_utils import utc_now
from ulid import ULID

log = structlog.get_logger()


class ReminderScheduler:
    """进程内提醒调度器（持久化 + asyncio 计时器）"""

    def __init__(
        self,
        store_group: StoreGroup,
        notifier,
        clock: Callable[[], datetime] = utc_now,
        poll_interval_s: float = 60.0,
    ) -> None:
        """
        Args:
            store_group: Store 实例组
            notifier: 提供 notify(action, task) 的通知器
            clock: 当前时间来源（测试可注入固定时钟）
            poll_interval_s: 轮询 pending 提醒的间隔（秒）
        """
        self._stores = store_group
        self._notifier = notifier
        self._clock = clock
        self._poll_interval_s = poll_interval_s

        # task_id -> {reminder_id -> 计时器}
        self._timers: dict[str, dict[str, asyncio.Task]] = {}
        # reminder_id -> 已装载的提醒
        self._armed: dict[str, ScheduledReminder] = {}
        # 无人持有或等待时自动回收
        self._task_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._poll_task: asyncio.Task | None = None

    async def schedule_reminders(self, task: Task) -> None:
        """为任务（重新）调度提醒

        先取消该任务已有的全部提醒，再为仍在未来的候选时间点各注册一个提醒。
        锁内重新读取任务行：任务已删除，或截止时间已被更新的请求改动时，
        本次快照已过期，直接跳过（由后续的删除/更新作业决定最终提醒）。
        """
        lock = self._get_task_lock(task.task_id)
        async with lock:
            current = await self._stores.task_store.get_task(task.task_id)
            if current is None or current.due_date != task.due_date:
                log.info(
                    "reminders_schedule_skipped",
                    task_id=task.task_id,
                    reason="task_deleted" if current is None else "due_date_changed",
                )
                return

            now = self._clock()
            reminders = [
                ScheduledReminder(
                    reminder_id=str(ULID()),
                    task_id=current.task_id,
                    offset=offset,
                    fire_at=fire_at,
                    task_snapshot=current,
                    created_at=now,
                    updated_at=now,
                )
                for offset, fire_at in compute_reminder_instants(current.due_date, now)
            ]
            cancelled = await replace_pending_reminders(
                self._stores.conn,
                self._stores.reminder_store,
                task.task_id,
                reminders,
                now,
            )
            self._disarm_task(task.task_id)
            for reminder in reminders:
                self._arm(reminder)

        log.info(
            "reminders_scheduled",
            task_id=task.task_id,
            scheduled=len(reminders),
            cancelled=len(cancelled),
            fire_at=[r.fire_at.isoformat() for r in reminders],
        )

    async def cancel_reminders(self, task_id: str) -> None:
        """取消任务的全部提醒（持久化行 + 内存计时器）"""
        now = self._clock()
        lock = self._get_task_lock(task_id)
        async with lock:
            cancelled = await replace_pending_reminders(
                self._stores.conn,
                self._stores.reminder_store,
                task_id,
                [],
                now,
            )
            self._disarm_task(task_id)

        if cancelled:
            log.info("reminders_cancelled", task_id=task_id, cancelled=len(cancelled))

    def pending_reminders(self, task_id: str | None = None) -> list[ScheduledReminder]:
        """内存中已装载、尚未触发的提醒，按 fire_at 升序"""
        reminders = [
            r for r in self._armed.values() if task_id is None or r.task_id == task_id
        ]
        return sorted(reminders, key=lambda r: r.fire_at)

    async def recover(self) -> int:
        """装载数据库中尚未装载的 pending 提醒

        已过期的提醒会立即触发。

        Returns:
            本次新装载的提醒数
        """
        rows = await self._stores.reminder_store.list_reminders(
            status=ReminderStatus.PENDING.value
        )
        now = self._clock()
        armed = 0
        overdue = 0
        for reminder in rows:
            if reminder.reminder_id in self._armed:
                continue
            self._arm(reminder)
            armed += 1
            if reminder.fire_at <= now:
                overdue += 1

        if armed:
            log.info("reminders_recovered", armed=armed, overdue=overdue)
        return armed

    async def start(self) -> None:
        """启动：恢复 pending 提醒并开始周期轮询"""
        await self.recover()
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(
                self._poll_loop(), name="reminder-poll"
            )

    async def shutdown(self) -> None:
        """停止轮询并撤销全部计时器（持久化行保持 pending，供下次启动恢复）"""
        if self._poll_task is not None:
            self._poll_task.cancel()
            await asyncio.gather(self._poll_task, return_exceptions=True)
            self._poll_task = None

        timers = [t for by_task in self._timers.values() for t in by_task.values()]
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        self._timers.clear()
        self._armed.clear()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._poll_interval_s)
            try:
                await self.recover()
            except Exception as e:
                # 轮询失败不终止循环
                log.error(
                    "reminder_poll_failed",
                    error_type=type(e).__name__,
                    error=str(e),
                )

    def _get_task_lock(self, task_id: str) -> asyncio.Lock:
        """获取 task 级别锁，序列化同一任务的调度与取消。"""
        lock = self._task_locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._task_locks[task_id] = lock
        return lock

    def _arm(self, reminder: ScheduledReminder) -> None:
        timer = asyncio.create_task(
            self._fire_later(reminder),
            name=f"reminder-{reminder.reminder_id}",
        )
        self._timers.setdefault(reminder.task_id, {})[reminder.reminder_id] = timer
        self._armed[reminder.reminder_id] = reminder
        timer.add_done_callback(lambda t, r=reminder: self._forget(r, t))

    def _disarm_task(self, task_id: str) -> None:
        for reminder_id, timer in self._timers.pop(task_id, {}).items():
            timer.cancel()
            self._armed.pop(reminder_id, None)

    def _forget(self, reminder: ScheduledReminder, timer: asyncio.Task | None) -> None:
        by_task = self._timers.get(reminder.task_id)
        if by_task is None or by_task.get(reminder.reminder_id) is not timer:
            return
        del by_task[reminder.reminder_id]
        if not by_task:
            self._timers.pop(reminder.task_id, None)
        self._armed.pop(reminder.reminder_id, None)

    async def _fire_later(self, reminder: ScheduledReminder) -> None:
        delay = (reminder.fire_at - self._clock()).total_seconds()
        if delay > 0:
            await asyncio.sleep(delay)

        # 已到点：脱离计时器表，后续的重新调度不再取消本次发送
        self._forget(reminder, asyncio.current_task())
        await self._fire(reminder)

    async def _fire(self, reminder: ScheduledReminder) -> None:
        """认领并发送一条提醒；任何异常只记录日志"""
        log_ctx = {
            "task_id": reminder.task_id,
            "reminder_id": reminder.reminder_id,
            "offset": reminder.offset.value,
        }
        try:
            claimed = await commit_reminder_status(
                self._stores.conn,
                self._stores.reminder_store,
                reminder.reminder_id,
                ReminderStatus.SENT,
                self._clock(),
            )
        except Exception as e:
            log.error("reminder_claim_failed", error_type=type(e).__name__, **log_ctx)
            return

        if not claimed:
            # 已被取消或已由其他路径触发
            log.info("reminder_skipped_not_pending", **log_ctx)
            return

        try:
            await self._notifier.notify(NotifyAction.REMINDER, reminder.task_snapshot)
        except Exception as e:
            log.error(
                "reminder_send_failed",
                error_type=type(e).__name__,
                error=str(e),
                **log_ctx,
            )
            await self._mark_failed(reminder)
            return

        log.info("reminder_fired", task=reminder.task_snapshot.task, **log_ctx)

    async def _mark_failed(self, reminder: ScheduledReminder) -> None:
        try:
            await commit_reminder_status(
                self._stores.conn,
                self._stores.reminder_store,
                reminder.reminder_id,
                ReminderStatus.FAILED,
                self._clock(),
                expected_status=ReminderStatus.SENT,
            )
        except Exception as e:
            log.error(
                "reminder_mark_failed_error",
                reminder_id=reminder.reminder_id,
                error_type=type(e).__name__,
            )
