"""NotifierConfig -- 邮件通知配置加载

从环境变量加载配置，中继地址 / 凭据 / 收发件人均不硬编码。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class NotifierConfig(BaseModel):
    """Notifier 包配置 -- 从环境变量加载

    环境变量:
        TASKTRACK_NOTIFIER_MODE: 发送模式（smtp/log）
        TASKTRACK_SMTP_HOST: 中继主机（默认 smtp.mailgun.org）
        TASKTRACK_SMTP_PORT: 中继端口（默认 587）
        TASKTRACK_SMTP_USER: 中继用户名
        TASKTRACK_SMTP_PASS: 中继密码
        TASKTRACK_SMTP_STARTTLS: 是否启用 STARTTLS（默认 true）
        TASKTRACK_SMTP_TIMEOUT_S: 连接超时（秒，默认 30）
        TASKTRACK_EMAIL_FROM: 发件人
        TASKTRACK_EMAIL_TO: 默认收件人
        TASKTRACK_DISPLAY_TZ: 邮件中截止时间的显示时区（默认 UTC）
    """

    mode: Literal["smtp", "log"] = Field(
        default="smtp",
        description="发送模式：smtp 真实发送 / log 仅记录日志",
    )
    smtp_host: str = Field(default="smtp.mailgun.org", description="SMTP 中继主机")
    smtp_port: int = Field(default=587, ge=1, le=65535, description="SMTP 中继端口")
    smtp_username: str = Field(default="", description="SMTP 用户名")
    smtp_password: SecretStr = Field(default=SecretStr(""), description="SMTP 密码")
    use_starttls: bool = Field(default=True, description="是否启用 STARTTLS")
    timeout_s: int = Field(default=30, ge=1, description="SMTP 连接超时（秒）")
    email_from: str = Field(default="", description="发件人地址")
    email_to: str = Field(default="", description="默认收件人地址")
    display_timezone: str = Field(default="UTC", description="截止时间显示时区")


def _read_int(env_var: str, default: int) -> int | None:
    """读取整数环境变量；非法值记录告警并返回 None（使用默认值）"""
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_notifier_config",
            env_var=env_var,
            value=val,
            fallback=default,
        )
        return None


def load_notifier_config() -> NotifierConfig:
    """从环境变量加载 Notifier 配置

    Returns:
        NotifierConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKTRACK_NOTIFIER_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("TASKTRACK_SMTP_HOST"):
        kwargs["smtp_host"] = val

    if (port := _read_int("TASKTRACK_SMTP_PORT", 587)) is not None:
        kwargs["smtp_port"] = port

    if val := os.environ.get("TASKTRACK_SMTP_USER"):
        kwargs["smtp_username"] = val

    if val := os.environ.get("TASKTRACK_SMTP_PASS"):
        kwargs["smtp_password"] = SecretStr(val)

    if val := os.environ.get("TASKTRACK_SMTP_STARTTLS"):
        kwargs["use_starttls"] = val.lower() not in ("0", "false", "no")

    if (timeout := _read_int("TASKTRACK_SMTP_TIMEOUT_S", 30)) is not None:
        kwargs["timeout_s"] = timeout

    if val := os.environ.get("TASKTRACK_EMAIL_FROM"):
        kwargs["email_from"] = val

    if val := os.environ.get("TASKTRACK_EMAIL_TO"):
        kwargs["email_to"] = val

    if val := os.environ.get("TASKTRACK_DISPLAY_TZ"):
        kwargs["display_timezone"] = val

    return NotifierConfig(**kwargs)
