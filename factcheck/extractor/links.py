"""Markdown link extraction with sentence context and numeric features.

``extract`` scans a Markdown document for ``[label](target)`` links and, for
each occurrence, derives:

* ``sentence`` — the sentence of the enclosing paragraph that contains the
  link;
* ``context``  — that sentence plus short neighbouring sentences, capped at
  :data:`CONTEXT_LIMIT` characters;
* ``features`` — numbers in the anchor, in all anchors of the sentence, in the
  sentence itself, and the sentence numbers no anchor accounts for.
"""

from __future__ import annotations

import re
from typing import List, Tuple

from factcheck.extractor.models import Link, LinkFeatures

CONTEXT_LIMIT = 360
NEIGHBOUR_LIMIT = 180
ELLIPSIS = "…"

LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

# A comma-grouped number ("2,000") or a plain digit run ("2024"), each with an
# optional decimal part and trailing percent sign.
NUMBER_RE = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?%?|\d+(?:\.\d+)?%?")

# Runs of ., ! or ? only end a sentence when followed by whitespace or the end
# of the text, so URLs and decimals stay intact.
_SENTENCE_RE = re.compile(r"\S.*?(?:[.!?]+(?=\s|\Z)|\Z)", re.DOTALL)
_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _normalize(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _paragraph_bounds(markdown: str, start: int, end: int) -> Tuple[int, int]:
    """Return the ``[start, end)`` span of the paragraph around a match."""
    before = markdown.rfind("\n\n", 0, start)
    para_start = 0 if before == -1 else before + 2
    after = markdown.find("\n\n", end)
    para_end = len(markdown) if after == -1 else after
    return para_start, para_end


def _split_sentences(paragraph: str) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` offsets of every sentence in *paragraph*."""
    return [(m.start(), m.end()) for m in _SENTENCE_RE.finditer(paragraph)]


def _sentence_index(spans: List[Tuple[int, int]], offset: int) -> int:
    for i, (start, end) in enumerate(spans):
        if start <= offset <= end:
            return i
    return 0


def _truncate(text: str) -> str:
    if len(text) <= CONTEXT_LIMIT:
        return text
    return text[: CONTEXT_LIMIT - len(ELLIPSIS)] + ELLIPSIS


def _number_key(token: str) -> str:
    return token.replace(",", "").rstrip("%")


def strip_links(text: str) -> str:
    """Replace Markdown link syntax with its anchor text."""
    return LINK_RE.sub(r"\1", text)


def number_tokens(text: str) -> List[str]:
    """Return numeric tokens in *text*, e.g. ``["81%", "2,000", "12.5"]``."""
    if not text:
        return []
    return NUMBER_RE.findall(text)


# ---------------------------------------------------------------------------
# Context / sentence / features
# ---------------------------------------------------------------------------

def sentence_and_context(markdown: str, start: int, end: int) -> Tuple[str, str]:
    """Return ``(sentence, context)`` for the link spanning ``[start, end)``."""
    para_start, para_end = _paragraph_bounds(markdown, start, end)
    paragraph = markdown[para_start:para_end]
    spans = _split_sentences(paragraph)

    if not spans:
        whole = _normalize(paragraph)
        return whole, _truncate(whole)

    sentences = [_normalize(paragraph[s:e]) for s, e in spans]
    current = _sentence_index(spans, start - para_start)

    selected = [sentences[current]]
    if current > 0:
        prev = sentences[current - 1]
        if prev and len(prev) < NEIGHBOUR_LIMIT:
            selected.insert(0, prev)
    if current + 1 < len(sentences):
        nxt = sentences[current + 1]
        if (
            nxt
            and len(nxt) < NEIGHBOUR_LIMIT
            and len(" ".join(selected)) + len(nxt) < CONTEXT_LIMIT
        ):
            selected.append(nxt)

    return sentences[current], _truncate(" ".join(selected))


def derive_features(sentence: str, anchor_text: str) -> LinkFeatures:
    """Compute the numeric-token features of one link within *sentence*."""
    sentence_numbers = number_tokens(strip_links(sentence))
    anchors = [m.group(1) for m in LINK_RE.finditer(sentence)]
    numbers_in_anchors = [tok for anchor in anchors for tok in number_tokens(anchor)]
    anchor_numbers = number_tokens(anchor_text)

    claimed = {_number_key(tok) for tok in numbers_in_anchors}
    unlinked = [tok for tok in sentence_numbers if _number_key(tok) not in claimed]

    return LinkFeatures(
        anchor_has_number=bool(anchor_numbers),
        sentence_has_number=bool(sentence_numbers),
        unlinked_numbers=unlinked,
        numbers_in_anchors=numbers_in_anchors,
        anchor_numbers=anchor_numbers,
        sentence_numbers=sentence_numbers,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(markdown: str) -> List[Link]:
    """Return every Markdown link in *markdown*, left to right."""
    if not markdown:
        return []
    markdown = markdown.replace("\r\n", "\n")

    links: List[Link] = []
    for match in LINK_RE.finditer(markdown):
        text, url = match.group(1), match.group(2).strip()
        sentence, context = sentence_and_context(markdown, match.start(), match.end())
        links.append(
            Link(
                text=text,
                url=url,
                context=context,
                sentence=sentence,
                features=derive_features(sentence, text),
            )
        )
    return links


def extract_unique(markdown: str) -> List[Link]:
    """Like :func:`extract`, keeping only the first occurrence of each URL."""
    seen: set[str] = set()
    unique: List[Link] = []
    for link in extract(markdown):
        if link.url not in seen:
            seen.add(link.url)
            unique.append(link)
    return unique
