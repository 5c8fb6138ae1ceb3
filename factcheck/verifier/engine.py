"""Two-phase verification engine.

Phase 1 — **fetch**: links are fetched in groups of ``fetch_batch_size``
(default 10), every link of a group in parallel, groups one after another.
A ``fetching`` update is emitted for each link when its group starts.

Phase 2 — **verify**: links are checked in groups of ``verify_batch_size``
(default 5), again fully parallel within a group.  A ``checking`` update is
emitted when the group starts and a terminal update (``verified``,
``invalid`` or ``inaccurate``) as each link finishes.

Parallel work writes only to its own index of pre-sized lists, so no locking
is needed.  Status callbacks are always invoked from the calling thread.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from factcheck.errors import ProviderError, ResponseParseError, RunCancelledError
from factcheck.extractor.models import Link, LinkStatus
from factcheck.llm.providers import ProviderChain
from factcheck.scraper.fetcher import ContentFetcher
from factcheck.scraper.models import FetchedData
from factcheck.verifier.checks import check_citation, check_relevance
from factcheck.verifier.grounding import grounding_failure
from factcheck.verifier.models import VerificationResult

UpdateCallback = Callable[[int, VerificationResult], None]


def batches(count: int, size: int) -> List[range]:
    """Split ``range(count)`` into consecutive ranges of at most *size*."""
    return [range(start, min(start + size, count)) for start in range(0, count, size)]


class VerificationEngine:
    """Fetch and verify a list of classified links."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        chat: ProviderChain,
        fetch_batch_size: int = 10,
        verify_batch_size: int = 5,
    ) -> None:
        self._fetcher = fetcher
        self._chat = chat
        self.fetch_batch_size = fetch_batch_size
        self.verify_batch_size = verify_batch_size

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def verify_links(
        self,
        links: List[Link],
        on_update: Optional[UpdateCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[VerificationResult]:
        """Run both phases and return one terminal result per link, in order.

        Raises:
            RunCancelledError: If *cancel* is set at a batch boundary.
        """
        for link in links:
            link.reset()
        fetched = self._fetch_phase(links, on_update, cancel)
        return self._verify_phase(links, fetched, on_update, cancel)

    @staticmethod
    def _emit(
        on_update: Optional[UpdateCallback], index: int, result: VerificationResult
    ) -> None:
        if on_update is not None:
            on_update(index, result)

    @staticmethod
    def _check_cancel(cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise RunCancelledError("verification cancelled")

    def _fetch_phase(
        self,
        links: List[Link],
        on_update: Optional[UpdateCallback],
        cancel: Optional[threading.Event],
    ) -> List[FetchedData]:
        fetched: List[FetchedData] = [FetchedData() for _ in links]

        for group in batches(len(links), self.fetch_batch_size):
            self._check_cancel(cancel)
            print(f"[FETCHING] Links {group.start + 1}-{group.stop} of {len(links)} …")
            for idx in group:
                links[idx].advance(LinkStatus.FETCHING)
                self._emit(on_update, idx, VerificationResult.for_link(links[idx]))

            with ThreadPoolExecutor(max_workers=len(group)) as pool:
                future_to_idx = {
                    pool.submit(self._fetch_one, links[idx]): idx for idx in group
                }
                for future in as_completed(future_to_idx):
                    fetched[future_to_idx[future]] = future.result()

        return fetched

    def _verify_phase(
        self,
        links: List[Link],
        fetched: List[FetchedData],
        on_update: Optional[UpdateCallback],
        cancel: Optional[threading.Event],
    ) -> List[VerificationResult]:
        results: List[Optional[VerificationResult]] = [None] * len(links)

        for group in batches(len(links), self.verify_batch_size):
            self._check_cancel(cancel)
            print(f"[CHECKING] Links {group.start + 1}-{group.stop} of {len(links)} …")
            for idx in group:
                links[idx].advance(LinkStatus.CHECKING)
                self._emit(on_update, idx, VerificationResult.for_link(links[idx]))

            with ThreadPoolExecutor(max_workers=len(group)) as pool:
                future_to_idx = {
                    pool.submit(self._verify_one, links[idx], fetched[idx]): idx
                    for idx in group
                }
                for future in as_completed(future_to_idx):
                    idx = future_to_idx[future]
                    result = future.result()
                    self._apply(links[idx], result)
                    results[idx] = result
                    print(f"[CHECKING] {result.status.value.upper():<10} {links[idx].url}")
                    self._emit(on_update, idx, result)

        return [r for r in results if r is not None]

    @staticmethod
    def _apply(link: Link, result: VerificationResult) -> None:
        link.advance(result.status)
        link.analysis = result.analysis
        link.suggested_url = result.suggested_url
        link.exact_quote = result.exact_quote
        link.redirect_url = result.redirect_url

    # ------------------------------------------------------------------
    # Per-link work (runs in worker threads)
    # ------------------------------------------------------------------

    def _fetch_one(self, link: Link) -> FetchedData:
        try:
            return self._fetcher.fetch(link.url)
        except Exception as exc:  # noqa: BLE001
            print(f"[FETCHING] ✗ {link.url!r}: {exc}")
            return FetchedData(error=str(exc))

    def _verify_one(self, link: Link, data: FetchedData) -> VerificationResult:
        result = VerificationResult.for_link(link, status=LinkStatus.CHECKING)
        if data.http_status is not None:
            result.redirect_url = data.http_status.redirect_url

        try:
            if data.http_failed:
                result.status = LinkStatus.INVALID
                result.analysis = (
                    f"Link returns {data.error}. The page does not exist or is not accessible."
                )
            elif link.is_citation:
                self._verify_citation(link, data, result)
            else:
                self._verify_regular(link, data, result)
        except Exception as exc:  # noqa: BLE001
            print(f"[CHECKING] ✗ {link.url!r}: {exc}")
            if link.is_citation:
                result.status = LinkStatus.INACCURATE
                result.analysis = f"Error during verification: {exc}"
            else:
                result.status = LinkStatus.VERIFIED
                result.analysis = f"Link appears to be working but verification failed: {exc}"
        return result

    def _verify_regular(self, link: Link, data: FetchedData, result: VerificationResult) -> None:
        result.status = LinkStatus.VERIFIED
        redirect_note = f" Redirects to: {result.redirect_url}" if result.redirect_url else ""

        if data.page_content is None:
            if data.error:
                result.analysis = (
                    "Link is live, but its content could not be retrieved to check relevance."
                    + redirect_note
                )
            elif result.redirect_url:
                result.analysis = f"Link is live. Redirects to: {result.redirect_url}"
            else:
                result.analysis = "Link is live and working."
            return

        try:
            relevance = check_relevance(self._chat, link, data.page_content)
        except (ProviderError, ResponseParseError) as exc:
            print(f"[CHECKING] Relevance check failed for {link.url!r}: {exc}")
            result.analysis = "Link is live, but could not verify relevance." + redirect_note
            return

        if relevance.is_relevant:
            analysis = "Link is live and anchor text is relevant to the page."
        else:
            analysis = "Link is live but anchor text may not match the page content well."
        if relevance.reasoning:
            analysis += f" {relevance.reasoning}"
        result.analysis = analysis + redirect_note

    def _verify_citation(self, link: Link, data: FetchedData, result: VerificationResult) -> None:
        if data.page_content is None:
            result.status = LinkStatus.INACCURATE
            result.analysis = (
                "Content unavailable for verification. "
                "Could not fetch page content to confirm the claim."
            )
            return

        verdict = check_citation(self._chat, link, data.page_content)
        result.status = LinkStatus.VERIFIED if verdict.is_correct else LinkStatus.INACCURATE
        result.analysis = verdict.reasoning
        result.suggested_url = verdict.suggested_url or None
        result.exact_quote = (verdict.exact_quote or "").strip() or None

        if verdict.is_correct:
            failure = grounding_failure(link.context, data.page_content.text, verdict.exact_quote)
            if failure:
                result.status = LinkStatus.INACCURATE
                result.analysis = f"Marked as Recheck: {failure}. {verdict.reasoning}".strip()

        if result.status == LinkStatus.VERIFIED and result.exact_quote:
            result.analysis = f'✓ Exact quote: "{result.exact_quote}"\n\n{result.analysis}'

        if result.redirect_url:
            result.analysis += f" Note: Link redirects to {result.redirect_url}"
