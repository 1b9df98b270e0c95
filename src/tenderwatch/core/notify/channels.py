"""
Notification channels.

Every channel takes a rendered report and either delivers it or raises
``NotificationError``. The dispatcher walks an ordered channel list the
same way the fallback fetcher walks transport strategies.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Callable, Literal

import httpx
import typer
from rich.console import Console

from tenderwatch.core.backends.base import Backend, BackendError, RequestSpec
from tenderwatch.core.backends.http_backend import HttpBackend
from tenderwatch.core.config.models import NotificationConfig
from tenderwatch.core.models import NotificationOutcome

from .report import Report


logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """A channel failed to deliver."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotificationChannel(ABC):
    """One way of getting a report to its recipients."""

    name: str = "channel"
    method: Literal["primary", "fallback"] = "primary"

    @abstractmethod
    async def deliver(self, report: Report) -> NotificationOutcome:
        """Deliver ``report``.

        Raises:
            NotificationError: If delivery failed
        """

    async def close(self) -> None:
        pass


class RelayEmailChannel(NotificationChannel):
    """Send through a transactional email relay (Resend-compatible API).

    Only a 2xx ``application/json`` object response counts as delivered.
    """

    name = "email relay"
    method = "primary"

    def __init__(self, config: NotificationConfig, backend: Backend | None = None) -> None:
        self.config = config
        self.backend = backend or HttpBackend(timeout=config.timeout_seconds)

    async def deliver(self, report: Report) -> NotificationOutcome:
        if not self.config.api_key:
            raise NotificationError("Relay API key is not configured")
        if not report.recipients:
            raise NotificationError("No recipients configured")

        request = RequestSpec(
            url=self.config.relay_url,
            method="POST",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json_data={
                "from": self.config.from_address,
                "to": list(report.recipients),
                "subject": report.subject,
                "html": report.html,
            },
            timeout=self.config.timeout_seconds,
        )

        try:
            response = await self.backend.fetch(request)
        except (BackendError, httpx.HTTPError) as e:
            raise NotificationError(f"Relay unreachable: {e}") from e

        if not response.ok or "application/json" not in response.content_type:
            raise NotificationError(
                f"Backend Error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            ack = json.loads(response.text)
        except ValueError as e:
            raise NotificationError(f"Relay acknowledgment is not JSON: {e}") from e
        if not isinstance(ack, dict):
            raise NotificationError("Relay acknowledgment is not a JSON object")

        delivery_id = ack.get("id")
        logger.info("Email sent to %d recipients (id=%s)", len(report.recipients), delivery_id)
        return NotificationOutcome(
            method="primary",
            delivered=True,
            delivery_id=str(delivery_id) if delivery_id is not None else None,
        )

    async def close(self) -> None:
        await self.backend.close()


class MailComposerChannel(NotificationChannel):
    """Hand the user a pre-filled draft in their local mail client.

    Handing off is delivery: what the user does next is invisible to us.
    If no launcher is available the ``mailto:`` link is printed instead.
    """

    name = "mail composer"
    method = "fallback"

    def __init__(
        self,
        open_client: bool = True,
        launcher: Callable[[str], int] | None = None,
        console: Console | None = None,
    ) -> None:
        self.open_client = open_client
        self.launcher = launcher or typer.launch
        self.console = console or Console(stderr=True)

    async def deliver(self, report: Report) -> NotificationOutcome:
        link = report.mailto_link()
        opened = False

        if self.open_client:
            try:
                opened = self.launcher(link) == 0
            except OSError as e:
                logger.warning("Could not open mail client: %s", e)

        if not opened:
            self.console.print("[yellow]Open this link to send the report draft:[/yellow]")
            self.console.print(link, soft_wrap=True, markup=False, highlight=False)

        return NotificationOutcome(method="fallback", delivered=True)
