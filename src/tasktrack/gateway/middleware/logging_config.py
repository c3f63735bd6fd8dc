"""日志配置 -- structlog 接管标准库 logging

渲染模式与级别来自 tasktrack.core.config（TASKTRACK_LOG_FORMAT / TASKTRACK_LOG_LEVEL）。
通知相关日志会带出收件人地址，统一在处理链中脱敏。
"""

import logging
import os

import structlog
from fastapi import FastAPI
from structlog.typing import EventDict, WrappedLogger
from tasktrack.core.config import get_log_format, get_log_level

# 携带邮箱地址的日志字段
_ADDRESS_KEYS = ("to", "recipient", "reminder_email", "email_from")

# 逐条输出过于冗长的第三方 logger
_QUIET_LOGGERS = ("aiosqlite", "uvicorn.access", "multipart")


def mask_address(address: str) -> str:
    """保留首字符与域名：alice@example.com -> a***@example.com"""
    local, sep, domain = address.partition("@")
    if not sep or not local:
        return address
    return f"{local[0]}***@{domain}"


def mask_recipients(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    for key in _ADDRESS_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
    return event_dict


def setup_logging(log_format: str | None = None, log_level: int | None = None) -> None:
    """初始化 structlog + 标准库 logging

    Args:
        log_format: "json"（生产）或 "dev"（pretty print）；默认读取配置
        log_level: logging 级别；默认读取配置
    """
    log_format = log_format or get_log_format()
    log_level = log_level if log_level is not None else get_log_level()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_recipients,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def setup_logfire(app: FastAPI) -> bool:
    """按 LOGFIRE_SEND_TO_LOGFIRE 启用 Logfire（需安装 apm extra 与 LOGFIRE_TOKEN）

    Returns:
        是否已启用；初始化失败时降级为纯本地日志
    """
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="tasktrack")
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            error=str(e),
        )
        return False
    return True
