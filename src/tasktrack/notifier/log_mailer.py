"""LogMailer -- 仅记录日志的邮件发送器

用于本地开发与测试：不连接任何中继，把邮件保存在内存并输出日志。
"""

from email.message import EmailMessage

import structlog

log = structlog.get_logger()


class LogMailer:
    """与 SmtpMailer 接口一致的日志发送器"""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        """记录邮件（不实际发送）"""
        self.sent.append(message)
        log.info(
            "mail_logged",
            subject=message["Subject"],
            to=message["To"],
        )
