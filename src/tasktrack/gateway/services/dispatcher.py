"""DeferredDispatcher -- 延迟副作用的执行边界

请求在持久化成功后立即返回；通知与提醒调度作为后台 asyncio 任务执行。
后台任务的异常在此处记录并终止，不重试、不向请求方暴露。
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

import structlog

log = structlog.get_logger()


class DeferredDispatcher:
    """fire-and-forget 后台任务管理器"""

    def __init__(self) -> None:
        # 保持强引用，避免后台任务在完成前被回收
        self._jobs: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._jobs)

    def spawn(self, name: str, coro: Coroutine[Any, Any, Any], **context: Any) -> asyncio.Task:
        """启动后台任务

        Args:
            name: 任务名（用于日志）
            coro: 要执行的协程
            **context: 附加到失败日志的上下文（如 task_id）

        Returns:
            创建的 asyncio.Task
        """
        job = asyncio.create_task(self._run(name, coro, context), name=name)
        self._jobs.add(job)
        job.add_done_callback(self._jobs.discard)
        return job

    async def drain(self) -> None:
        """等待全部在途后台任务结束"""
        while self._jobs:
            await asyncio.gather(*list(self._jobs), return_exceptions=True)

    @staticmethod
    async def _run(name: str, coro: Coroutine[Any, Any, Any], context: dict[str, Any]) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error(
                "deferred_job_failed",
                job=name,
                error_type=type(e).__name__,
                error=str(e),
                **context,
            )
