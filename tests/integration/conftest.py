"""集成测试共享 fixture -- 经由 lifespan 启动的完整应用"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def integration_env(tmp_path: Path, monkeypatch) -> Path:
    """集成测试环境变量：临时数据目录 + log 模式 Notifier"""
    monkeypatch.setenv("TASKTRACK_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("TASKTRACK_DB_PATH", raising=False)
    monkeypatch.delenv("TASKTRACK_UPLOADS_DIR", raising=False)
    monkeypatch.setenv("TASKTRACK_NOTIFIER_MODE", "log")
    monkeypatch.setenv("TASKTRACK_EMAIL_FROM", "bot@example.com")
    monkeypatch.setenv("TASKTRACK_EMAIL_TO", "me@example.com")
    monkeypatch.setenv("TASKTRACK_REMINDER_POLL_INTERVAL", "3600")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    return tmp_path


@pytest_asyncio.fixture
async def integration_app(integration_env: Path):
    """创建 app 并执行 lifespan 启动/关闭"""
    from tasktrack.gateway.main import create_app

    app = create_app()
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
