"""Deterministic citation heuristics.

These rules run without any network access.  They serve two purposes:

* **Fallback** — :func:`fallback_classification` labels every link when the
  LLM cannot be reached or replies with garbage.
* **Override** — :func:`refine_with_heuristics` runs after every
  classification and corrects the model where a cheap signal is unambiguous:
  an anchor carrying a numeral is always a citation, and a generic
  navigation anchor ("learn more", "homepage", …) without a numeral never is.

Decision list used by :func:`is_citation` (first match wins):

1. Anchor text contains a numeral or ``%`` → citation.
2. The sentence has unlinked numbers and the anchor/URL looks like a source
   (report, study, ``.pdf``, ``/press`` …) → citation.
3. Context-level heuristic (:func:`context_suggests_citation`).
4. Otherwise regular.
"""

from __future__ import annotations

import re
from typing import Iterable, List

from factcheck.extractor.models import Link, LinkFeatures

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

SOURCE_WORDS = (
    "report", "study", "research", "survey", "data", "statistics",
    "increase", "decrease", "percent", "percentage",
)
SOURCE_URL_HINTS = (
    "stats", "statistics", "/research", "/study", "/report", "whitepaper", ".pdf", "/press",
)
ATTRIBUTION_VERBS = (
    "according to", "announced", "reported", "stated", "says", "said",
    "found that", "finds", "shows", "study", "research", "survey",
    "trial", "report", "published", "press release", "revealed",
)
STAT_TERMS = (
    "increase", "decrease", "percent", "percentage", "statistic", "statistics",
    "figure", "data", "estimates", "estimate",
)
STATS_URL_HINTS = (
    "/stats", "stats-", "statistics", "/research", "/study", "/report",
    "whitepaper", ".pdf", "/press",
)
GENERIC_PHRASES = (
    "homepage", "home", "learn more", "click here", "read more", "about us",
    "contact", "what is", "guide", "overview",
)

_DIGIT_RE = re.compile(r"\d")


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------

def has_numeral(text: str) -> bool:
    """``True`` if *text* contains a digit or a percent sign."""
    return bool(text) and (_DIGIT_RE.search(text) is not None or "%" in text)


def _mentions_number(text: str) -> bool:
    return has_numeral(text) or " percent" in text


def _contains_any(haystack: str, needles: Iterable[str]) -> bool:
    return any(n in haystack for n in needles)


def plausible_source(anchor_text: str, url: str) -> bool:
    """``True`` if the anchor or URL looks like it points at a data source."""
    return _contains_any((anchor_text or "").lower(), SOURCE_WORDS) or _contains_any(
        (url or "").lower(), SOURCE_URL_HINTS
    )


def is_generic_anchor(anchor_text: str) -> bool:
    """``True`` for navigation-style anchors that carry no numeral."""
    text = (anchor_text or "").lower().strip()
    if has_numeral(text):
        return False
    return _contains_any(text, GENERIC_PHRASES)


def context_suggests_citation(context: str, anchor_text: str, url: str) -> bool:
    """Rule 3: attribution wording or numbers pointing at a stats-like URL."""
    c = (context or "").lower()
    t = (anchor_text or "").lower()
    u = (url or "").lower()

    has_verb = _contains_any(c, ATTRIBUTION_VERBS)
    number_nearby = _mentions_number(c) or _mentions_number(t)
    stat_wording = _contains_any(c, STAT_TERMS) or _contains_any(t, STAT_TERMS)

    if has_verb and (_mentions_number(c) or stat_wording):
        return True
    if number_nearby and _contains_any(u, STATS_URL_HINTS):
        return True
    return False


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def _rule_anchor_numeral(anchor_text: str) -> bool:
    return has_numeral(anchor_text)


def _rule_unlinked_number(anchor_text: str, url: str, features: LinkFeatures) -> bool:
    return bool(features.unlinked_numbers) and plausible_source(anchor_text, url)


def classify_features(
    context: str, anchor_text: str, url: str, features: LinkFeatures
) -> bool:
    """Run the ordered decision list and return ``True`` for a citation."""
    if _rule_anchor_numeral(anchor_text):
        return True
    if _rule_unlinked_number(anchor_text, url, features):
        return True
    return context_suggests_citation(context, anchor_text, url)


def is_citation(link: Link) -> bool:
    """Heuristic label for *link*."""
    return classify_features(link.context, link.text, link.url, link.features)


# ---------------------------------------------------------------------------
# Bulk helpers
# ---------------------------------------------------------------------------

def fallback_classification(links: List[Link]) -> List[Link]:
    """Label every link using the heuristics alone."""
    for link in links:
        link.is_citation = is_citation(link)
    return links


def refine_with_heuristics(links: List[Link]) -> List[Link]:
    """Override labels where a strong local signal disagrees with them."""
    for link in links:
        strong = _rule_anchor_numeral(link.text) or _rule_unlinked_number(
            link.text, link.url, link.features
        )
        if strong and not link.is_citation:
            link.is_citation = True
        if link.is_citation and is_generic_anchor(link.text):
            link.is_citation = False
    return links
