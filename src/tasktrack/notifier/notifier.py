"""Notifier -- 任务通知邮件的统一入口

notify() 在失败时抛出 NotificationError 子类，
由调用方（延迟执行边界 / 提醒触发）捕获并记录。
"""

from email.message import EmailMessage
from typing import Protocol

import structlog
from tasktrack.core.models import NotifyAction, Task

from .config import NotifierConfig
from .exceptions import NotifierConfigError
from .log_mailer import LogMailer
from .render import render_task_email, resolve_timezone
from .smtp_mailer import SmtpMailer

log = structlog.get_logger()

# log 模式下未配置收发件人时使用的占位地址
_LOG_MODE_ADDRESS = "tasktrack@localhost"


class Mailer(Protocol):
    """邮件发送器接口（SmtpMailer / LogMailer）"""

    async def send(self, message: EmailMessage) -> None: ...


class Notifier:
    """任务通知发送器"""

    def __init__(
        self,
        mailer: Mailer,
        email_from: str,
        email_to: str = "",
        display_timezone: str = "UTC",
    ) -> None:
        """
        Args:
            mailer: 邮件发送器
            email_from: 发件人
            email_to: 默认收件人（任务未设置 reminderEmail 时使用）
            display_timezone: 截止时间显示时区
        """
        self._mailer = mailer
        self._email_from = email_from
        self._email_to = email_to
        self._tz = resolve_timezone(display_timezone)

    @property
    def mailer(self) -> Mailer:
        return self._mailer

    def recipient_for(self, task: Task) -> str:
        """任务级 reminderEmail 优先，否则使用默认收件人"""
        return task.reminder_email or self._email_to

    async def notify(self, action: NotifyAction, task: Task) -> None:
        """发送一封任务通知邮件

        Raises:
            NotifierConfigError: 发件人或收件人未配置
            MailTransportError: 中继发送失败
        """
        recipient = self.recipient_for(task)
        if not self._email_from:
            raise NotifierConfigError("发件人未配置（TASKTRACK_EMAIL_FROM）")
        if not recipient:
            raise NotifierConfigError("收件人未配置（TASKTRACK_EMAIL_TO / reminderEmail）")

        message = render_task_email(
            action,
            task,
            sender=self._email_from,
            recipient=recipient,
            tz=self._tz,
        )
        await self._mailer.send(message)

        log.info(
            "notification_sent",
            action=action.value,
            task_id=task.task_id,
            to=recipient,
        )


def create_notifier(config: NotifierConfig) -> Notifier:
    """根据配置模式构建 Notifier"""
    if config.mode == "log":
        return Notifier(
            mailer=LogMailer(),
            email_from=config.email_from or _LOG_MODE_ADDRESS,
            email_to=config.email_to or _LOG_MODE_ADDRESS,
            display_timezone=config.display_timezone,
        )

    mailer = SmtpMailer(
        host=config.smtp_host,
        port=config.smtp_port,
        username=config.smtp_username,
        password=config.smtp_password.get_secret_value(),
        use_starttls=config.use_starttls,
        timeout_s=config.timeout_s,
    )
    return Notifier(
        mailer=mailer,
        email_from=config.email_from,
        email_to=config.email_to,
        display_timezone=config.display_timezone,
    )
