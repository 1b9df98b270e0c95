"""
Notification dispatcher.

Tries the primary channel, then falls back. The fixed recipient list and
report must survive a total outage of the email provider, so the chain
always ends in the local mail composer. Nothing raises past ``dispatch``.
"""

from __future__ import annotations

import logging

from tenderwatch.core.config.models import NotificationConfig
from tenderwatch.core.models import NotificationOutcome, Tender

from .channels import (
    MailComposerChannel,
    NotificationChannel,
    NotificationError,
    RelayEmailChannel,
)
from .report import build_report


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Deliver a scan's tenders through the first channel that works."""

    def __init__(
        self,
        channels: list[NotificationChannel],
        recipients: list[str],
        subject_prefix: str = "[TenderWatch]",
        window_days: int = 30,
    ) -> None:
        if not channels:
            raise ValueError("At least one notification channel is required")
        self.channels = list(channels)
        self.recipients = list(recipients)
        self.subject_prefix = subject_prefix
        self.window_days = window_days

    @classmethod
    def from_config(cls, config: NotificationConfig) -> NotificationDispatcher:
        return cls(
            channels=[
                RelayEmailChannel(config),
                MailComposerChannel(open_client=config.open_mail_client),
            ],
            recipients=config.recipients,
            subject_prefix=config.subject_prefix,
            window_days=config.window_days,
        )

    async def dispatch(self, tenders: list[Tender]) -> NotificationOutcome:
        """Send the report for a non-empty tender list."""
        report = build_report(
            tenders,
            self.recipients,
            subject_prefix=self.subject_prefix,
            window_days=self.window_days,
        )

        last_error: str | None = None
        for channel in self.channels:
            try:
                outcome = await channel.deliver(report)
            except NotificationError as e:
                last_error = str(e)
                logger.warning("%s failed, trying next channel: %s", channel.name, e)
                continue
            if outcome.method == "fallback":
                logger.warning("Automated email failed. Opened default mail client with draft.")
            return outcome

        logger.error("All notification channels failed: %s", last_error)
        return NotificationOutcome(method="fallback", delivered=False, error=last_error)

    async def close(self) -> None:
        for channel in self.channels:
            await channel.close()
