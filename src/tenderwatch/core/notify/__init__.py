"""Notification - report rendering, delivery channels, dispatcher."""

from .channels import (
    MailComposerChannel,
    NotificationChannel,
    NotificationError,
    RelayEmailChannel,
)
from .dispatcher import NotificationDispatcher
from .report import Report, build_report, render_html, render_text

__all__ = [
    "NotificationDispatcher",
    "NotificationChannel",
    "NotificationError",
    "RelayEmailChannel",
    "MailComposerChannel",
    "Report",
    "build_report",
    "render_html",
    "render_text",
]
