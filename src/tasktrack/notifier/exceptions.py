"""Notifier 异常体系

通知异常只出现在延迟执行路径上，由调度边界捕获并记录日志，
从不向请求方暴露。
"""


class NotificationError(Exception):
    """Notifier 包基础异常"""


class NotifierConfigError(NotificationError):
    """通知配置缺失（发件人 / 收件人未配置等）"""


class MailTransportError(NotificationError):
    """邮件中继不可达或拒收（连接失败、认证失败、超时等）"""

    def __init__(self, relay: str, original_error: Exception) -> None:
        """
        Args:
            relay: 尝试连接的中继地址 host:port
            original_error: 原始异常
        """
        super().__init__(f"邮件中继发送失败: {relay} -- {original_error}")
        self.relay = relay
        self.original_error = original_error
