"""通知邮件渲染

标题格式为 "Task <Action> Notification"；正文为 HTML + 纯文本双版本，
列出任务标题、优先级、截止时间、备注（若有）与动作标签。
"""

import html
from datetime import UTC, datetime, tzinfo
from email.message import EmailMessage
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from tasktrack.core.models import NotifyAction, Task

log = structlog.get_logger()


def resolve_timezone(name: str) -> tzinfo:
    """解析显示时区，未知时区回退为 UTC"""
    if name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("unknown_display_timezone", timezone=name, fallback="UTC")
        return UTC


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_due_date(value: datetime, tz: tzinfo = UTC) -> str:
    """格式化截止时间，例如 "October 19th, 2026 3:05 PM" """
    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%B} {_ordinal(local.day)}, {local.year} {hour}:{local:%M} {meridiem}"


def subject_for(action: NotifyAction) -> str:
    return f"Task {action.value.capitalize()} Notification"


def render_task_email(
    action: NotifyAction,
    task: Task,
    sender: str,
    recipient: str,
    tz: tzinfo = UTC,
) -> EmailMessage:
    """构建通知邮件

    Args:
        action: 通知动作
        task: 任务快照
        sender: 发件人
        recipient: 收件人
        tz: 截止时间显示时区

    Returns:
        EmailMessage（text/plain + text/html）
    """
    subject = subject_for(action)
    due = format_due_date(task.due_date, tz)

    text_lines = [
        subject,
        "",
        f"Task: {task.task}",
        f"Priority: {task.priority}",
        f"Due Date: {due}",
    ]
    if task.notes:
        text_lines.append(f"Notes: {task.notes}")
    text_lines.append(f"Action: {action.value.upper()}")

    notes_html = (
        f"<p><strong>Notes:</strong> {html.escape(task.notes)}</p>" if task.notes else ""
    )
    body_html = f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>{html.escape(subject)}</h2>
  <div style="background-color: #f4f4f4; padding: 15px; border-radius: 5px;">
    <p><strong>Task:</strong> {html.escape(task.task)}</p>
    <p><strong>Priority:</strong> {html.escape(task.priority)}</p>
    <p><strong>Due Date:</strong> {html.escape(due)}</p>
    {notes_html}
    <p><strong>Action:</strong> {action.value.upper()}</p>
  </div>
</div>
"""

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = recipient
    message.set_content("\n".join(text_lines))
    message.add_alternative(body_html, subtype="html")
    return message
