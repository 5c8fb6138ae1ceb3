"""HTML → text extraction shared by the fetch proxy and the legacy payload.

``extract_text_and_links`` mirrors what the proxy returns: boilerplate
elements are dropped, block elements become line breaks, entities are decoded
by the parser and whitespace is collapsed.  ``html_to_markdown`` turns pasted
rich text into Markdown so its anchors can be picked up by the extractor.
"""

from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment

from factcheck.scraper.models import PageLink

_UNWANTED_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "aside", "iframe"]
_BLOCK_TAGS = [
    "p", "div", "section", "article", "main", "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6", "br", "tr", "table", "thead", "tbody",
    "blockquote", "pre",
]
_WS_RE = re.compile(r"\s+")
_PARA = "\x00"
_ITEM = "\x01"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _clean_soup(html: str) -> BeautifulSoup:
    """Parse *html* and strip comments plus non-content elements."""
    soup = BeautifulSoup(html, "html.parser")
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for tag in soup(_UNWANTED_TAGS):
        tag.decompose()
    return soup


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _extract_links(container, base_url: str, limit: int) -> List[PageLink]:
    """Return up to *limit* absolute links with non-empty anchor text."""
    links: List[PageLink] = []
    for a in container.find_all("a", href=True):
        if len(links) >= limit:
            break
        href = a["href"].strip()
        text = _collapse(a.get_text(" "))
        if not href or href.startswith("#") or not text:
            continue
        links.append(PageLink(text=text, url=urljoin(base_url, href)))
    return links


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_text_and_links(
    html: str,
    base_url: str = "",
    text_limit: int = 5000,
    links_limit: int = 10,
) -> Tuple[str, List[PageLink]]:
    """Return ``(text, links)`` for an HTML document.

    The ``<body>`` is used when present.  Never raises on odd markup; an empty
    or non-string input yields ``("", [])``.
    """
    if not html or not isinstance(html, str):
        return "", []

    soup = _clean_soup(html)
    container = soup.body or soup
    links = _extract_links(container, base_url, links_limit)

    for tag in container.find_all(_BLOCK_TAGS):
        tag.insert_before("\n")
        tag.insert_after("\n")

    text = _collapse(container.get_text(" "))
    return text[:text_limit], links


def html_to_markdown(html: str) -> str:
    """Convert pasted HTML to Markdown-ish text, keeping links as ``[text](href)``."""
    if not html:
        return ""
    soup = _clean_soup(html)
    container = soup.body or soup

    for a in container.find_all("a", href=True):
        label = _collapse(a.get_text())
        a.replace_with(f"[{label}]({a['href'].strip()})" if label else "")

    for br in container.find_all("br"):
        br.replace_with("\n")

    # Block boundaries become paragraph breaks; text sitting directly in a
    # block that also holds nested blocks stays in its own paragraph.
    for block in container.find_all(_BLOCK_TAGS):
        block.insert_before(_PARA)
        if block.name == "li":
            block.insert(0, _ITEM)
        block.insert_after(_PARA)

    paragraphs: List[str] = []
    for segment in container.get_text().split(_PARA):
        is_item = _ITEM in segment
        text = _collapse(segment.replace(_ITEM, " "))
        if text:
            paragraphs.append(f"- {text}" if is_item else text)
    return "\n\n".join(paragraphs)
