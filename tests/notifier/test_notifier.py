"""Notifier 测试

测试内容：
1. 收件人选择：reminderEmail 优先
2. 收发件人缺失时抛出 NotifierConfigError
3. create_notifier 按模式构建发送器
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr
from tasktrack.core.models import NotifyAction
from tasktrack.notifier import (
    LogMailer,
    MailTransportError,
    Notifier,
    NotifierConfig,
    NotifierConfigError,
    SmtpMailer,
    create_notifier,
)


class TestNotifier:
    async def test_default_recipient(self, make_task):
        mailer = LogMailer()
        notifier = Notifier(mailer, email_from="bot@example.com", email_to="me@example.com")
        await notifier.notify(NotifyAction.ADDED, make_task())

        assert len(mailer.sent) == 1
        assert mailer.sent[0]["To"] == "me@example.com"
        assert mailer.sent[0]["Subject"] == "Task Added Notification"

    async def test_reminder_email_overrides_recipient(self, make_task):
        mailer = LogMailer()
        notifier = Notifier(mailer, email_from="bot@example.com", email_to="me@example.com")
        await notifier.notify(
            NotifyAction.REMINDER, make_task(reminder_email="other@example.com")
        )
        assert mailer.sent[0]["To"] == "other@example.com"

    async def test_missing_sender_raises(self, make_task):
        notifier = Notifier(LogMailer(), email_from="", email_to="me@example.com")
        with pytest.raises(NotifierConfigError):
            await notifier.notify(NotifyAction.ADDED, make_task())

    async def test_missing_recipient_raises(self, make_task):
        mailer = LogMailer()
        notifier = Notifier(mailer, email_from="bot@example.com")
        with pytest.raises(NotifierConfigError):
            await notifier.notify(NotifyAction.ADDED, make_task())
        assert mailer.sent == []

    async def test_transport_error_propagates(self, make_task):
        mailer = AsyncMock()
        mailer.send.side_effect = MailTransportError("relay:587", OSError("down"))
        notifier = Notifier(mailer, email_from="bot@example.com", email_to="me@example.com")
        with pytest.raises(MailTransportError):
            await notifier.notify(NotifyAction.DELETED, make_task())


class TestCreateNotifier:
    def test_log_mode(self):
        notifier = create_notifier(NotifierConfig(mode="log"))
        assert isinstance(notifier.mailer, LogMailer)

    async def test_log_mode_has_placeholder_addresses(self, make_task):
        notifier = create_notifier(NotifierConfig(mode="log"))
        await notifier.notify(NotifyAction.ADDED, make_task())
        assert notifier.mailer.sent[0]["To"] == "tasktrack@localhost"

    def test_smtp_mode(self):
        notifier = create_notifier(
            NotifierConfig(
                smtp_host="relay.internal",
                smtp_port=2525,
                smtp_password=SecretStr("pw"),
                email_from="bot@example.com",
            )
        )
        assert isinstance(notifier.mailer, SmtpMailer)
        assert notifier.mailer.relay == "relay.internal:2525"
