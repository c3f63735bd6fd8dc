"""全局 pytest 配置 -- 临时 SQLite 数据库 + Store fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from tasktrack.core.models import Task
from tasktrack.core.store import StoreGroup, create_store_group
from ulid import ULID

# 测试中固定的“当前时间”
FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from tasktrack.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_path / "raw.db"))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 StoreGroup"""
    group = await create_store_group(tmp_db_path)
    yield group
    await group.conn.close()


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构建 Task 的工厂，未指定字段使用默认值"""

    def _make(**overrides) -> Task:
        fields = {
            "task_id": str(ULID()),
            "task": "Pay rent",
            "priority": "high",
            "due_date": FIXED_NOW + timedelta(days=2),
            "notes": None,
            "file": None,
            "reminder_email": None,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        fields.update(overrides)
        return Task(**fields)

    return _make
