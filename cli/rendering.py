"""Terminal rendering of the link table and live status updates."""

from __future__ import annotations

from typing import Callable, List

import typer

from factcheck.extractor.models import Link, LinkStatus
from factcheck.verifier.models import VerificationResult

_TEXT_WIDTH = 40
_URL_WIDTH = 60


def _clip(value: str, width: int) -> str:
    value = " ".join(value.split())
    return value if len(value) <= width else value[: width - 1] + "…"


def status_icon(status: LinkStatus) -> str:
    icons = {
        LinkStatus.PENDING: "⏳",
        LinkStatus.FETCHING: "🌐",
        LinkStatus.CHECKING: "🔍",
        LinkStatus.VERIFIED: "✅",
        LinkStatus.INVALID: "❌",
        LinkStatus.INACCURATE: "⚠️",
    }
    return icons.get(status, "•")


def kind_label(is_citation: bool) -> str:
    return "citation" if is_citation else "link"


def format_row(index: int, text: str, url: str, is_citation: bool, status: LinkStatus) -> str:
    return (
        f"{index + 1:>3}. {status_icon(status)} {status.value:<10} "
        f"[{kind_label(is_citation):<8}] {_clip(text, _TEXT_WIDTH)!r} → {_clip(url, _URL_WIDTH)}"
    )


class TerminalRenderer:
    """Draw the link table once, then print one line per status change.

    Terminal results also print their analysis and any suggested source
    indented below the row.
    """

    def __init__(self, echo: Callable[[str], None] = typer.echo) -> None:
        self._echo = echo

    def render(self, links: List[Link]) -> None:
        citations = sum(1 for link in links if link.is_citation)
        self._echo(f"Found {len(links)} link(s): {citations} citation(s), {len(links) - citations} regular.\n")
        for idx, link in enumerate(links):
            self._echo(format_row(idx, link.text, link.url, link.is_citation, link.status))
        self._echo("")

    def update(self, index: int, result: VerificationResult) -> None:
        self._echo(
            format_row(index, result.link_text, result.original_url, result.is_citation, result.status)
        )
        if not result.status.is_terminal:
            return
        for line in result.analysis.splitlines():
            if line.strip():
                self._echo(f"       {line}")
        if result.suggested_url:
            self._echo(f"       Suggested source: {result.suggested_url}")


def summarise(results: List[VerificationResult]) -> str:
    """One-line tally of terminal statuses, e.g. ``verified=3  invalid=1``."""
    counts = {status: 0 for status in (LinkStatus.VERIFIED, LinkStatus.INVALID, LinkStatus.INACCURATE)}
    for result in results:
        if result.status in counts:
            counts[result.status] += 1
    return "  ".join(f"{status.value}={count}" for status, count in counts.items())
