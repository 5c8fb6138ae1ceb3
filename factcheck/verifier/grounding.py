"""Independent grounding of a model's "this citation is correct" verdict.

A positive verdict is only accepted when:

(a) the model supplied a non-empty ``exactQuote``;
(b) the quote occurs verbatim in the fetched page text (case-insensitive,
    whitespace-collapsed); and
(c) when the claim's context mentions figures, at least one of them occurs
    in the quote as a whole number token.

Figures are compared as :class:`Figure` values — a ``Decimal`` plus a percent
flag — so ``"2,000"`` equals ``"2000"`` and ``"79"`` never matches inside
``"1979"`` or ``"179"``.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import List, NamedTuple, Optional

from factcheck.extractor.links import strip_links

_FIGURE_RE = re.compile(
    r"(?<![\d.])(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)(?![\d])(\s*%)?"
)
_WS_RE = re.compile(r"\s+")


class Figure(NamedTuple):
    value: Decimal
    percent: bool

    def __str__(self) -> str:
        return f"{self.value.normalize():f}{'%' if self.percent else ''}"


def _collapse(text: str) -> str:
    return _WS_RE.sub(" ", str(text or "")).strip().lower()


def extract_figures(text: str) -> List[Figure]:
    """Return the distinct figures mentioned in *text*, in order of appearance."""
    figures: List[Figure] = []
    seen: set[Decimal] = set()
    for match in _FIGURE_RE.finditer(strip_links(text or "")):
        try:
            value = Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            continue
        if value in seen:
            continue
        seen.add(value)
        figures.append(Figure(value=value, percent=bool(match.group(2))))
    return figures


def quote_has_figure(quote: str, figure: Figure) -> bool:
    """``True`` if *figure* appears in *quote* as a standalone number."""
    return any(f.value == figure.value for f in extract_figures(quote))


def quote_in_page(page_text: str, quote: str) -> bool:
    """Case-insensitive, whitespace-normalised containment check."""
    needle = _collapse(quote)
    return bool(needle) and needle in _collapse(page_text)


def grounding_failure(context: str, page_text: str, exact_quote: Optional[str]) -> Optional[str]:
    """Return why a positive verdict is not grounded, or ``None`` if it is."""
    quote = (exact_quote or "").strip()
    if not quote or not quote_in_page(page_text, quote):
        return "no verifiable exact quote found in fetched content"

    expected = extract_figures(context)
    if expected and not any(quote_has_figure(quote, fig) for fig in expected):
        listed = ", ".join(str(fig) for fig in expected)
        return f"expected figure not present in the on-page quote ({listed})"
    return None
