"""tasktrack Notifier -- 邮件通知抽象层

notifier 包的公开接口导出。
"""

# 配置
from .config import NotifierConfig, load_notifier_config

# 异常
from .exceptions import MailTransportError, NotificationError, NotifierConfigError

# 核心组件
from .log_mailer import LogMailer
from .notifier import Mailer, Notifier, create_notifier
from .render import format_due_date, render_task_email
from .smtp_mailer import SmtpMailer

__all__ = [
    "Notifier",
    "Mailer",
    "create_notifier",
    "SmtpMailer",
    "LogMailer",
    "render_task_email",
    "format_due_date",
    "NotifierConfig",
    "load_notifier_config",
    "NotificationError",
    "NotifierConfigError",
    "MailTransportError",
]
