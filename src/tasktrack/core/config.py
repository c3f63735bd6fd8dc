"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、上传目录、提醒轮询间隔、日志模式等可配置项。
"""

import logging
import os
from datetime import timedelta
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKTRACK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKTRACK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "tasktrack.db"),
    )


def get_uploads_dir() -> Path:
    """获取上传附件存储目录"""
    return Path(
        os.environ.get(
            "TASKTRACK_UPLOADS_DIR",
            str(_get_base_dir() / "uploads"),
        )
    )


def get_reminder_poll_interval() -> float:
    """获取提醒轮询间隔（秒），非法值回退为 60"""
    raw = os.environ.get("TASKTRACK_REMINDER_POLL_INTERVAL", "60")
    try:
        value = float(raw)
    except ValueError:
        return 60.0
    return value if value > 0 else 60.0


# 上传附件对外访问的 URL 前缀
UPLOADS_URL_PREFIX: str = "/uploads"

# 提醒偏移量：截止时间前 24 小时、前 1 小时
REMINDER_OFFSETS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "1h": timedelta(hours=1),
}


def get_log_format() -> str:
    """日志渲染模式："json" 或 "dev"（默认）"""
    value = os.environ.get("TASKTRACK_LOG_FORMAT", "dev").lower()
    return value if value in ("json", "dev") else "dev"


def get_log_level() -> int:
    """日志级别，无法识别时回退为 INFO"""
    name = os.environ.get("TASKTRACK_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
