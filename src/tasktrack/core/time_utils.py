"""时间工具 -- 统一使用带时区的 UTC 时间"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """将时间规范化为 UTC

    naive 时间视为 UTC；带时区的时间换算到 UTC。
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
