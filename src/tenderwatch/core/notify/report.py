"""
Email report rendering.

One report per scan: an HTML body for the transactional relay and a
plain-text equivalent for the mail-composer fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from urllib.parse import quote

from tenderwatch.core.models import Tender


PLAIN_TEXT_SEPARATOR = "\n\n-------------------\n\n"


@dataclass(frozen=True)
class Report:
    """A rendered report, ready for any channel."""

    recipients: tuple[str, ...]
    subject: str
    html: str
    text: str

    def mailto_link(self) -> str:
        """``mailto:`` URL pre-addressed to all recipients with subject and body."""
        to = ",".join(self.recipients)
        return f"mailto:{to}?subject={quote(self.subject, safe='')}&body={quote(self.text, safe='')}"


def build_subject(count: int, prefix: str = "[TenderWatch]") -> str:
    return f"{prefix} {count} New Opportunities Found"


def render_html(tenders: list[Tender], window_days: int = 30) -> str:
    parts = [
        '<div style="font-family: Arial, sans-serif; color: #333;">',
        '<h2 style="color: #2563eb;">Tender Watch Report</h2>',
        f"<p>Found <strong>{len(tenders)}</strong> new tenders matching your criteria "
        f"(Last {window_days} Days).</p>",
        '<hr style="border: 0; border-top: 1px solid #eee; margin: 20px 0;" />',
    ]

    for index, t in enumerate(tenders, start=1):
        chips = "".join(
            '<span style="display:inline-block; background:#e0f2fe; color:#0369a1; '
            'padding:2px 8px; border-radius:12px; font-size:11px; margin-right:5px;">'
            f"{escape(k)}</span>"
            for k in sorted(t.keywords_found)
        )
        parts.append(
            '<div style="margin-bottom: 24px; padding: 15px; background-color: #f8fafc; '
            'border-radius: 8px; border: 1px solid #e2e8f0;">'
            f'<h3 style="margin-top: 0; font-size: 16px;">{index}. '
            f'<a href="{escape(t.url, quote=True)}" style="color: #2563eb; text-decoration: none;">'
            f"{escape(t.title)}</a></h3>"
            '<p style="font-size: 12px; color: #64748b; margin: 5px 0;">'
            f"Source: <strong>{escape(t.source)}</strong> | Date: {t.date_found.isoformat()}</p>"
            f'<p style="font-size: 14px; line-height: 1.5;">{escape(t.snippet)}</p>'
            f'<div style="margin-top: 10px;">{chips}</div>'
            "</div>"
        )

    parts.append('<hr style="border: 0; border-top: 1px solid #eee; margin: 20px 0;" />')
    parts.append('<p style="font-size: 12px; color: #999;">Automated by TenderWatch</p>')
    parts.append("</div>")
    return "\n".join(parts)


def render_text(tenders: list[Tender]) -> str:
    blocks = [
        f"{t.title}\nSource: {t.source}\nLink: {t.url}\nKeywords: {', '.join(sorted(t.keywords_found))}"
        for t in tenders
    ]
    return PLAIN_TEXT_SEPARATOR.join(blocks)


def build_report(
    tenders: list[Tender],
    recipients: list[str],
    subject_prefix: str = "[TenderWatch]",
    window_days: int = 30,
) -> Report:
    """Render the report for a non-empty tender list.

    Raises:
        ValueError: If ``tenders`` is empty
    """
    if not tenders:
        raise ValueError("Cannot build a report for zero tenders")

    return Report(
        recipients=tuple(recipients),
        subject=build_subject(len(tenders), subject_prefix),
        html=render_html(tenders, window_days),
        text=render_text(tenders),
    )
