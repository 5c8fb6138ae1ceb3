"""Tests for the deterministic citation heuristics (fallback + override pass)."""

from __future__ import annotations

import pytest

from factcheck.classifier.heuristics import (
    context_suggests_citation,
    fallback_classification,
    has_numeral,
    is_citation,
    is_generic_anchor,
    plausible_source,
    refine_with_heuristics,
)
from factcheck.extractor import extract


def _link(markdown: str, index: int = 0):
    return extract(markdown)[index]


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------

class TestSignals:
    @pytest.mark.parametrize("text, expected", [
        ("81%", True),
        ("in 2024", True),
        ("%", True),
        ("no numbers", False),
        ("", False),
    ])
    def test_has_numeral(self, text: str, expected: bool) -> None:
        assert has_numeral(text) is expected

    @pytest.mark.parametrize("anchor, expected", [
        ("Learn more", True),
        ("click here", True),
        ("Our Homepage", True),
        ("Learn more about the 81% increase", False),
        ("marketing guides", True),
        ("Contacts", True),
        ("product overviews", True),
        ("the survey", False),
    ])
    def test_is_generic_anchor(self, anchor: str, expected: bool) -> None:
        assert is_generic_anchor(anchor) is expected

    def test_plausible_source_from_anchor(self) -> None:
        assert plausible_source("annual report", "https://example.com/about") is True

    def test_plausible_source_from_url(self) -> None:
        assert plausible_source("here", "https://example.com/files/q3.pdf") is True

    def test_not_a_source(self) -> None:
        assert plausible_source("our team", "https://example.com/team") is False

    def test_context_attribution_with_number(self) -> None:
        assert context_suggests_citation(
            "According to officials, 12 cases were confirmed.", "agency", "https://gov.example"
        ) is True

    def test_context_number_with_stats_url(self) -> None:
        assert context_suggests_citation(
            "Usage climbed to 40% this year.", "dashboard", "https://example.com/stats/usage"
        ) is True

    def test_context_without_signals(self) -> None:
        assert context_suggests_citation(
            "Visit our homepage for details.", "homepage", "https://example.com"
        ) is False


# ---------------------------------------------------------------------------
# Decision list
# ---------------------------------------------------------------------------

class TestIsCitation:
    def test_anchor_with_numeral(self) -> None:
        assert is_citation(_link("Prices rose by [208% increase](https://x.com/a) overall.")) is True

    def test_unlinked_number_with_source_anchor(self) -> None:
        md = "Sales rose 40% last year, per the [annual report](https://example.com/about)."
        assert is_citation(_link(md)) is True

    def test_attribution_context(self) -> None:
        md = "According to officials, the [agency](https://gov.example) reported 12 cases."
        assert is_citation(_link(md)) is True

    def test_plain_navigation_link(self) -> None:
        assert is_citation(_link("Visit our [homepage](https://example.com) for details.")) is False


# ---------------------------------------------------------------------------
# Bulk helpers
# ---------------------------------------------------------------------------

class TestBulk:
    def test_fallback_labels_every_link(self) -> None:
        links = extract(
            "Prices rose by [208% increase](https://x.com/a). "
            "Visit our [homepage](https://example.com) for details."
        )
        fallback_classification(links)
        assert [l.is_citation for l in links] == [True, False]

    def test_refine_promotes_numeral_anchor(self) -> None:
        link = _link("Prices rose by [208% increase](https://x.com/a) overall.")
        link.is_citation = False
        refine_with_heuristics([link])
        assert link.is_citation is True

    def test_refine_demotes_generic_anchor(self) -> None:
        link = _link("Survey results are in, [click here](https://x.com/a) to see them.")
        link.is_citation = True
        refine_with_heuristics([link])
        assert link.is_citation is False

    def test_refine_demotes_generic_phrase_inside_longer_anchor(self) -> None:
        link = _link("Read our [marketing guides](https://x.com/guides) before launch.")
        link.is_citation = True
        refine_with_heuristics([link])
        assert link.is_citation is False

    def test_generic_anchor_with_numeral_stays_citation(self) -> None:
        link = _link("[Learn more about the 81% increase](https://example.com/stats).")
        link.is_citation = False
        refine_with_heuristics([link])
        assert link.is_citation is True

    def test_refine_leaves_plain_regular_link(self) -> None:
        link = _link("Visit our [homepage](https://example.com) for details.")
        refine_with_heuristics([link])
        assert link.is_citation is False
