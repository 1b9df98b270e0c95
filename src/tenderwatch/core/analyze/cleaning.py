"""HTML cleanup applied to acquired content before analysis."""

from __future__ import annotations

import re

from lxml import etree
from lxml import html as lxml_html


_TAG_RE = re.compile(r"<(?:!--|!doctype|/?[a-zA-Z][\w:-]*[\s/>])", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

# Pages arrive as text; XHTML may still carry an XML encoding declaration
_PARSER = lxml_html.HTMLParser(encoding="utf-8")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def clean_content(raw: str) -> str:
    """Strip scripts, styles and comments, and collapse whitespace.

    Reader output (markdown or plain text) carries no markup and is only
    whitespace-collapsed.
    """
    if not _TAG_RE.search(raw):
        return _collapse(raw)

    try:
        doc = lxml_html.document_fromstring(raw.encode("utf-8"), parser=_PARSER)
    except etree.ParserError:
        # No elements at all
        return ""

    etree.strip_elements(doc, "script", "style", etree.Comment, with_tail=False)
    return _collapse(lxml_html.tostring(doc, encoding="unicode"))


def truncate(content: str, max_chars: int) -> str:
    return content[:max_chars]
