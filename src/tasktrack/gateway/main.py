"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、Notifier 与提醒调度器初始化、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from tasktrack.core.config import (
    UPLOADS_URL_PREFIX,
    get_db_path,
    get_reminder_poll_interval,
    get_uploads_dir,
)
from tasktrack.core.store import create_store_group
from tasktrack.notifier import create_notifier, load_notifier_config

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, tasks
from .services.dispatcher import DeferredDispatcher
from .services.reminder_scheduler import ReminderScheduler
from .services.uploads import UploadStorage

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理

    启动：初始化 Store、上传存储、Notifier，恢复 pending 提醒并开始轮询。
    关闭：等待后台作业结束，停止提醒调度，关闭数据库连接。
    """
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group
    app.state.upload_storage = UploadStorage(get_uploads_dir())

    notifier_config = load_notifier_config()
    notifier = create_notifier(notifier_config)
    app.state.notifier_config = notifier_config
    app.state.notifier = notifier
    log.info(
        "notifier_initialized",
        mode=notifier_config.mode,
        relay=f"{notifier_config.smtp_host}:{notifier_config.smtp_port}"
        if notifier_config.mode == "smtp"
        else None,
    )

    app.state.dispatcher = DeferredDispatcher()
    scheduler = ReminderScheduler(
        store_group,
        notifier,
        poll_interval_s=get_reminder_poll_interval(),
    )
    app.state.reminder_scheduler = scheduler
    await scheduler.start()

    yield

    await app.state.dispatcher.drain()
    await scheduler.shutdown()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskTrack API",
        version="0.1.0",
        description="任务管理 API：任务 CRUD、通知邮件与截止提醒",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    # 上传附件静态访问；目录在 lifespan 中创建
    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=str(get_uploads_dir()), check_dir=False),
        name="uploads",
    )

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
