"""gateway 测试配置 -- 手动初始化 app.state 的 FastAPI app + httpx AsyncClient"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tasktrack.core.store import create_store_group
from tasktrack.gateway.services.dispatcher import DeferredDispatcher
from tasktrack.gateway.services.reminder_scheduler import ReminderScheduler
from tasktrack.gateway.services.uploads import UploadStorage
from tasktrack.notifier import LogMailer, Notifier


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    """轮询等待条件成立（predicate 可为同步或异步函数）"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        result = predicate()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def wait_until():
    """后台任务断言用的轮询等待函数"""
    return _wait_until


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, monkeypatch):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    monkeypatch.setenv("TASKTRACK_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.setenv("TASKTRACK_UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from tasktrack.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(tmp_path / "sqlite" / "test.db")
    notifier = Notifier(LogMailer(), email_from="bot@example.com", email_to="me@example.com")
    scheduler = ReminderScheduler(store_group, notifier)

    app.state.store_group = store_group
    app.state.upload_storage = UploadStorage(tmp_path / "uploads")
    app.state.notifier = notifier
    app.state.dispatcher = DeferredDispatcher()
    app.state.reminder_scheduler = scheduler

    yield app

    await app.state.dispatcher.drain()
    await scheduler.shutdown()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
