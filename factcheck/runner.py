"""Pipeline coordinator.

``FactCheckPipeline`` sequences the stages and relays status to a renderer:

    extract → classify → fetch phase → verify phase

``run_fact_check`` is the one-call convenience wrapper used by the CLI.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Protocol

from factcheck.classifier.batch import classify_links
from factcheck.classifier.heuristics import fallback_classification, refine_with_heuristics
from factcheck.config import Settings
from factcheck.extractor.links import extract_unique
from factcheck.extractor.models import Link
from factcheck.llm.providers import ProviderChain, build_provider_chain
from factcheck.scraper.fetcher import ContentFetcher
from factcheck.verifier.engine import UpdateCallback, VerificationEngine
from factcheck.verifier.models import VerificationResult


class Renderer(Protocol):
    """Presentation collaborator: draws the table and patches single rows."""

    def render(self, links: List[Link]) -> None: ...

    def update(self, index: int, result: VerificationResult) -> None: ...


class FactCheckPipeline:
    """Extract, classify and verify the links of one document.

    Args:
        settings: Explicit configuration for this pipeline.
        chat: Provider chain override; built from *settings* on first use.
        fetcher: Content fetcher override; built from *settings* by default.
    """

    def __init__(
        self,
        settings: Settings,
        chat: Optional[ProviderChain] = None,
        fetcher: Optional[ContentFetcher] = None,
    ) -> None:
        self.settings = settings
        self._chat = chat
        self._fetcher = fetcher or ContentFetcher.from_settings(settings)

    @property
    def chat(self) -> ProviderChain:
        """The provider chain.  Raises ``ConfigurationError`` if none is configured."""
        if self._chat is None:
            self._chat = build_provider_chain(self.settings)
        return self._chat

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def extract(self, markdown: str) -> List[Link]:
        links = extract_unique(markdown)
        print(f"[EXTRACTING] Found {len(links)} unique link(s).")
        return links

    def classify(self, links: List[Link], heuristic_only: bool = False) -> List[Link]:
        if heuristic_only:
            return refine_with_heuristics(fallback_classification(links))
        return classify_links(links, self.chat)

    def verify(
        self,
        links: List[Link],
        on_update: Optional[UpdateCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[VerificationResult]:
        engine = VerificationEngine(
            fetcher=self._fetcher,
            chat=self.chat,
            fetch_batch_size=self.settings.fetch_batch_size,
            verify_batch_size=self.settings.verify_batch_size,
        )
        return engine.verify_links(links, on_update=on_update, cancel=cancel)

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(
        self,
        markdown: str,
        renderer: Optional[Renderer] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[VerificationResult]:
        """Run every stage on *markdown*.

        Raises:
            ConfigurationError: Before any work, if no LLM provider is usable.
            RunCancelledError: If *cancel* is set at a batch boundary.
        """
        chat = self.chat  # fail fast on missing credentials

        links = self.extract(markdown)
        classify_links(links, chat)
        if renderer is not None:
            renderer.render(links)

        results = self.verify(
            links,
            on_update=renderer.update if renderer is not None else None,
            cancel=cancel,
        )
        print(f"[DONE] Verified {len(results)} link(s).")
        return results


def run_fact_check(
    markdown: str,
    settings: Optional[Settings] = None,
    renderer: Optional[Renderer] = None,
) -> List[VerificationResult]:
    """Build a pipeline from *settings* (or the environment) and run it."""
    pipeline = FactCheckPipeline(settings or Settings())
    return pipeline.run(markdown, renderer=renderer)
