"""SmtpMailer -- 通过 SMTP 中继发送邮件

smtplib 为阻塞 API，发送在工作线程中执行，不阻塞事件循环。
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage

import structlog

from .exceptions import MailTransportError

log = structlog.get_logger()


class SmtpMailer:
    """SMTP 中继客户端（可选 STARTTLS + 登录）"""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_starttls: bool = True,
        timeout_s: int = 30,
    ) -> None:
        """
        Args:
            host: 中继主机
            port: 中继端口
            username: 登录用户名，为空时跳过登录
            password: 登录密码
            use_starttls: 是否在登录前升级 TLS
            timeout_s: 连接超时（秒）
        """
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_starttls = use_starttls
        self._timeout_s = timeout_s

    @property
    def relay(self) -> str:
        return f"{self._host}:{self._port}"

    async def send(self, message: EmailMessage) -> None:
        """发送邮件

        Raises:
            MailTransportError: 连接、认证或投递失败
        """
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(self.relay, e) from e

        log.debug("smtp_message_delivered", relay=self.relay, to=message["To"])

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout_s) as client:
            if self._use_starttls:
                client.starttls(context=ssl.create_default_context())
            if self._username:
                client.login(self._username, self._password)
            client.send_message(message)
