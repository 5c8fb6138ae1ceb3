"""Tests for the two-phase verification engine.

Mocking strategy:
- ``_FakeFetcher`` stands in for ``ContentFetcher`` and returns canned
  ``FetchedData`` per URL while recording the order of calls.
- The provider chain is a ``MagicMock`` whose ``complete`` answers the
  relevance and citation prompts with canned JSON (or raises).
- Proxy error handling goes through a real ``ContentFetcher`` with ``respx``
  standing in for the fetch proxy.
"""

from __future__ import annotations

import json
import threading
from typing import Callable, Optional
from unittest.mock import MagicMock

import httpx
import pytest
import respx

from factcheck.errors import ProviderError, RunCancelledError
from factcheck.extractor import Link, LinkStatus, extract
from factcheck.scraper import ContentFetcher
from factcheck.scraper.models import FetchedData, HttpStatus, PageContent, PageLink
from factcheck.verifier import VerificationEngine, batches
from factcheck.verifier.checks import RELEVANCE_SYSTEM

_CLAIM = "According to a [study](https://example.com/study) 81% of users agreed."
_PAGE = "In our survey, 81% of users agreed that the redesign helped."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakeFetcher:
    def __init__(
        self,
        data_for: Optional[Callable[[str], FetchedData]] = None,
        log: Optional[list] = None,
    ) -> None:
        self._data_for = data_for or (lambda url: FetchedData(http_status=HttpStatus.from_code(200)))
        self._log = log if log is not None else []
        self.calls: list[str] = []

    def fetch(self, url: str) -> FetchedData:
        self.calls.append(url)
        data = self._data_for(url)
        self._log.append(("fetched", url))
        return data


def _page(text: str = _PAGE, redirect: Optional[str] = None) -> FetchedData:
    return FetchedData(
        http_status=HttpStatus.from_code(200, redirect_url=redirect),
        page_content=PageContent(text=text, links=[PageLink("primary", "https://primary.org")]),
    )


def _chat(
    relevance: Optional[dict] = None,
    citation: Optional[dict] = None,
    error: Optional[Exception] = None,
) -> MagicMock:
    def _complete(messages, *, task=None, temperature=None):
        if error is not None:
            raise error
        if messages[0]["content"] == RELEVANCE_SYSTEM:
            return json.dumps(relevance or {"isRelevant": True, "reasoning": "Matches."})
        return json.dumps(citation or {
            "isCorrect": True,
            "reasoning": "The figure is stated.",
            "exactQuote": "81% of users agreed",
            "suggestedUrl": None,
        })

    chat = MagicMock()
    chat.complete.side_effect = _complete
    return chat


def _citation() -> Link:
    link = extract(_CLAIM)[0]
    link.is_citation = True
    return link


def _regular(i: int = 0) -> Link:
    return Link(text=f"page {i}", url=f"https://example.com/p{i}", context=f"See page {i}.")


def _engine(fetcher=None, chat=None, **kwargs) -> VerificationEngine:
    return VerificationEngine(fetcher=fetcher or _FakeFetcher(), chat=chat or _chat(), **kwargs)


# ---------------------------------------------------------------------------
# batches
# ---------------------------------------------------------------------------

class TestBatches:
    @pytest.mark.parametrize("count, size, expected", [
        (23, 10, [10, 10, 3]),
        (23, 5, [5, 5, 5, 5, 3]),
        (5, 5, [5]),
        (0, 5, []),
    ])
    def test_sizes(self, count: int, size: int, expected: list[int]) -> None:
        assert [len(b) for b in batches(count, size)] == expected

    def test_contiguous(self) -> None:
        assert [list(b) for b in batches(7, 3)] == [[0, 1, 2], [3, 4, 5], [6]]


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------

class TestScheduling:
    def test_phases_and_batch_boundaries(self) -> None:
        log: list = []
        links = [_regular(i) for i in range(23)]
        engine = _engine(fetcher=_FakeFetcher(log=log))

        def on_update(idx, result):
            log.append((result.status.value, idx))

        results = engine.verify_links(links, on_update=on_update)

        assert len(results) == 23
        assert [r.original_url for r in results] == [l.url for l in links]

        pos = {entry: i for i, entry in enumerate(log)}
        # Fetch batches of 10: batch n+1 starts after every fetch of batch n.
        for start in (10, 20):
            assert all(pos[("fetched", links[i].url)] < pos[("fetching", start)] for i in range(start))
        # The whole fetch phase precedes the verify phase.
        last_fetch = max(pos[("fetched", l.url)] for l in links)
        assert last_fetch < min(pos[("checking", i)] for i in range(23))
        # Verify batches of 5.
        for start in (5, 10, 15, 20):
            assert all(pos[("verified", i)] < pos[("checking", start)] for i in range(start))

    def test_each_link_moves_forward_exactly_once_per_phase(self) -> None:
        seen: dict[int, list[str]] = {}
        links = [_regular(i) for i in range(12)]

        _engine().verify_links(links, on_update=lambda i, r: seen.setdefault(i, []).append(r.status.value))

        assert all(seen[i] == ["fetching", "checking", "verified"] for i in range(12))
        assert all(l.status == LinkStatus.VERIFIED for l in links)

    def test_batch_sizes_are_configurable(self) -> None:
        log: list = []
        links = [_regular(i) for i in range(4)]
        engine = _engine(fetcher=_FakeFetcher(log=log), fetch_batch_size=2, verify_batch_size=3)
        engine.verify_links(links, on_update=lambda i, r: log.append((r.status.value, i)))

        pos = {entry: i for i, entry in enumerate(log)}
        assert pos[("fetched", links[1].url)] < pos[("fetching", 2)]
        assert pos[("verified", 2)] < pos[("checking", 3)]

    def test_empty_input(self) -> None:
        assert _engine().verify_links([]) == []


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class TestCancellation:
    def test_cancel_before_start(self) -> None:
        fetcher = _FakeFetcher()
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(RunCancelledError):
            _engine(fetcher=fetcher).verify_links([_regular()], cancel=cancel)
        assert fetcher.calls == []

    def test_cancel_stops_at_next_batch(self) -> None:
        cancel = threading.Event()

        def _data(url: str) -> FetchedData:
            cancel.set()
            return FetchedData(http_status=HttpStatus.from_code(200))

        fetcher = _FakeFetcher(data_for=_data)
        with pytest.raises(RunCancelledError):
            _engine(fetcher=fetcher).verify_links([_regular(i) for i in range(15)], cancel=cancel)
        assert len(fetcher.calls) == 10


# ---------------------------------------------------------------------------
# Per-link outcomes
# ---------------------------------------------------------------------------

class TestOutcomes:
    def test_http_failure_is_invalid(self) -> None:
        fetcher = _FakeFetcher(data_for=lambda url: FetchedData(
            http_status=HttpStatus.from_code(404), error="404: Not Found",
        ))
        chat = _chat()
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_citation()])

        assert result.status == LinkStatus.INVALID
        assert "404" in result.analysis
        assert "Not Found" in result.analysis
        chat.complete.assert_not_called()

    def test_grounded_citation_is_verified(self) -> None:
        link = _citation()
        [result] = _engine(fetcher=_FakeFetcher(data_for=lambda url: _page())).verify_links([link])

        assert result.status == LinkStatus.VERIFIED
        assert result.exact_quote == "81% of users agreed"
        assert result.analysis.startswith('✓ Exact quote: "81% of users agreed"\n\n')
        assert link.status == LinkStatus.VERIFIED
        assert link.exact_quote == "81% of users agreed"

    def test_quote_missing_from_page_is_rechecked(self) -> None:
        chat = _chat(citation={
            "isCorrect": True, "reasoning": "Looks right.",
            "exactQuote": "81% of all users strongly agreed", "suggestedUrl": None,
        })
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_citation()])

        assert result.status == LinkStatus.INACCURATE
        assert result.analysis.startswith(
            "Marked as Recheck: no verifiable exact quote found in fetched content."
        )

    def test_wrong_figure_is_rechecked(self) -> None:
        chat = _chat(citation={
            "isCorrect": True, "reasoning": "Close enough.",
            "exactQuote": "80% of users agreed", "suggestedUrl": None,
        })
        fetcher = _FakeFetcher(data_for=lambda url: _page("Survey: 80% of users agreed."))
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_citation()])

        assert result.status == LinkStatus.INACCURATE
        assert "expected figure not present" in result.analysis

    def test_model_rejects_citation(self) -> None:
        chat = _chat(citation={
            "isCorrect": False, "reasoning": "The page does not mention 81%.",
            "exactQuote": None, "suggestedUrl": "https://primary.org",
        })
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_citation()])

        assert result.status == LinkStatus.INACCURATE
        assert result.analysis == "The page does not mention 81%."
        assert result.suggested_url == "https://primary.org"

    def test_citation_without_content(self) -> None:
        fetcher = _FakeFetcher(data_for=lambda url: FetchedData(
            http_status=HttpStatus.from_code(200), error="Content unavailable",
        ))
        [result] = _engine(fetcher=fetcher).verify_links([_citation()])

        assert result.status == LinkStatus.INACCURATE
        assert result.analysis.startswith("Content unavailable for verification.")

    def test_citation_redirect_note(self) -> None:
        fetcher = _FakeFetcher(data_for=lambda url: _page(redirect="https://example.com/moved"))
        [result] = _engine(fetcher=fetcher).verify_links([_citation()])

        assert result.redirect_url == "https://example.com/moved"
        assert result.analysis.endswith(" Note: Link redirects to https://example.com/moved")

    def test_citation_provider_failure(self) -> None:
        chat = _chat(error=ProviderError("all providers down"))
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_citation()])

        assert result.status == LinkStatus.INACCURATE
        assert result.analysis.startswith("Error during verification:")

    def test_regular_relevant(self) -> None:
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher).verify_links([_regular()])

        assert result.status == LinkStatus.VERIFIED
        assert result.analysis == "Link is live and anchor text is relevant to the page. Matches."

    def test_regular_not_relevant(self) -> None:
        chat = _chat(relevance={"isRelevant": False, "reasoning": "Different topic."})
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_regular()])

        assert result.status == LinkStatus.VERIFIED
        assert result.analysis.startswith("Link is live but anchor text may not match")

    def test_regular_relevance_failure_still_verified(self) -> None:
        chat = _chat(error=ProviderError("down"))
        fetcher = _FakeFetcher(data_for=lambda url: _page())
        [result] = _engine(fetcher=fetcher, chat=chat).verify_links([_regular()])

        assert result.status == LinkStatus.VERIFIED
        assert result.analysis == "Link is live, but could not verify relevance."

    def test_regular_without_content(self) -> None:
        [result] = _engine().verify_links([_regular()])
        assert result.analysis == "Link is live and working."

    def test_regular_redirect_without_content(self) -> None:
        fetcher = _FakeFetcher(data_for=lambda url: FetchedData(
            http_status=HttpStatus.from_code(200, redirect_url="https://example.com/new"),
        ))
        [result] = _engine(fetcher=fetcher).verify_links([_regular()])
        assert result.analysis == "Link is live. Redirects to: https://example.com/new"

    def test_fetcher_exception_is_contained(self) -> None:
        def _boom(url: str) -> FetchedData:
            raise RuntimeError("socket closed")

        [result] = _engine(fetcher=_FakeFetcher(data_for=_boom)).verify_links([_regular()])
        assert result.status == LinkStatus.VERIFIED
        assert result.analysis.startswith("Link is live, but its content could not be retrieved")

    @pytest.mark.parametrize("code", [500, 502, 504])
    def test_proxy_gateway_error_does_not_invalidate(self, code: int) -> None:
        fetcher = ContentFetcher(proxy_url="http://proxy.test/api/fetch-url")
        with respx.mock:
            respx.get(url__startswith="http://proxy.test").mock(
                return_value=httpx.Response(code, json={"error": "Upstream timeout"})
            )
            regular, citation = _engine(fetcher=fetcher).verify_links([_regular(), _citation()])

        assert regular.status == LinkStatus.VERIFIED
        assert citation.status == LinkStatus.INACCURATE
        assert citation.analysis.startswith("Content unavailable")



# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------

class TestIdempotence:
    def test_rerun_gives_same_results(self) -> None:
        links = [_citation(), _regular()]
        engine = _engine(fetcher=_FakeFetcher(data_for=lambda url: _page()))

        first = [r.to_dict() for r in engine.verify_links(links)]
        second = [r.to_dict() for r in engine.verify_links(links)]

        assert first == second
