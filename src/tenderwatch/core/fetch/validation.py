"""
Acquired-content validation.

A relay can answer 200 with nothing useful: an empty body, a stub error
message, or (when a local proxy route is missing) our own application
shell. These checks reject such responses so the fetcher moves on.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tenderwatch.core.backends.base import ContentRejected


@dataclass
class ContentValidator:
    """Length and app-shell checks for acquired content."""

    min_length: int = 50
    app_shell_markers: list[str] = field(
        default_factory=lambda: ["<!DOCTYPE html>", "TenderWatch AI"]
    )

    def is_app_shell(self, content: str) -> bool:
        """True when every marker is present, i.e. the page is our own UI."""
        if not self.app_shell_markers:
            return False
        return all(marker in content for marker in self.app_shell_markers)

    def validate(self, content: str | None, url: str | None = None) -> str:
        """Return ``content`` if it looks like the target page.

        Raises:
            ContentRejected: If content is empty, too short, or the app shell
        """
        if not content or len(content) < self.min_length:
            raise ContentRejected("Empty or too short content", url=url)

        if self.is_app_shell(content):
            raise ContentRejected(
                "Proxy returned app index.html (Server not reachable?)",
                url=url,
            )

        return content
