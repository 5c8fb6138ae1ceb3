"""Content fetcher: resolves a URL through the fetch proxy.

The proxy (``settings.fetch_proxy_url``, normally this project's own
``/api/fetch-url`` route) performs the network access and answers with::

    {"text": "...", "links": [{"text", "url"}], "status": {"url", "content_type", "http_code"}}

A legacy raw-HTML shape ``{"contents": "<html>…", "status": {...}}`` is also
accepted and stripped locally.  When the upstream page fails the proxy
answers with its own non-2xx status and ``{"error", "status"}``.  A proxy
error without a ``status`` field is the proxy's own failure and says nothing
about the page, so the link is assumed live.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from factcheck.config import Settings
from factcheck.errors import ContentUnavailableError
from factcheck.scraper.extractor import extract_text_and_links
from factcheck.scraper.models import FetchedData, HttpStatus, PageContent, PageLink

CONTENT_UNAVAILABLE = "Content unavailable"


def _same_url(a: str, b: str) -> bool:
    return a.rstrip("/") == b.rstrip("/")


class ContentFetcher:
    """Fetch HTTP status and readable page content via the proxy."""

    def __init__(
        self,
        proxy_url: str,
        timeout: float = 30.0,
        text_limit: int = 3000,
        links_limit: int = 10,
    ) -> None:
        self._proxy_url = proxy_url
        self._timeout = timeout
        self._text_limit = text_limit
        self._links_limit = links_limit
        self._warned_unreachable = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContentFetcher":
        return cls(
            proxy_url=settings.fetch_proxy_url,
            timeout=settings.request_timeout,
            text_limit=settings.page_text_limit,
            links_limit=settings.page_links_limit,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, url: str) -> httpx.Response:
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(
                self._proxy_url,
                params={"url": url},
                headers={"Accept": "application/json"},
            )

    # ------------------------------------------------------------------
    # Payload interpretation
    # ------------------------------------------------------------------

    def status_from(self, url: str, data: Any) -> Optional[HttpStatus]:
        """Derive the upstream :class:`HttpStatus` from a proxy payload.

        Returns ``None`` when the payload carries no upstream status, i.e. the
        proxy failed on its own (504, 502 or 500 ``{"error", "details"}``).
        """
        status = data.get("status") if isinstance(data, dict) else None

        if isinstance(status, dict) and status.get("http_code") is not None:
            code = int(status["http_code"])
            final_url = status.get("url") or url
            redirect = None if _same_url(final_url, url) else final_url
            return HttpStatus.from_code(code, redirect_url=redirect)

        if isinstance(status, int) and not isinstance(status, bool):
            return HttpStatus.from_code(status)

        return None

    def content_from(self, data: Any, base_url: str) -> PageContent:
        """Build :class:`PageContent` from either payload shape.

        Raises:
            ContentUnavailableError: If the payload carries no readable text.
        """
        if not isinstance(data, dict):
            raise ContentUnavailableError("proxy returned a non-object payload")

        if "text" in data:
            text = data.get("text") or ""
            links = [
                PageLink(text=str(item.get("text", "")), url=str(item.get("url", "")))
                for item in (data.get("links") or [])
                if isinstance(item, dict) and item.get("url")
            ]
        elif "contents" in data:
            text, links = extract_text_and_links(
                data.get("contents") or "",
                base_url,
                text_limit=self._text_limit,
                links_limit=self._links_limit,
            )
        else:
            raise ContentUnavailableError("proxy payload has neither text nor contents")

        if not text.strip():
            raise ContentUnavailableError("page has no readable text")

        return PageContent(text=text[: self._text_limit], links=links[: self._links_limit])

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def _upstream_status(
        self, url: str, response: httpx.Response, data: Any
    ) -> Optional[HttpStatus]:
        status = self.status_from(url, data)
        if status is None and response.is_success:
            return HttpStatus.from_code(response.status_code)
        return status

    def _proxy_failed(self, url: str, exc: Exception) -> None:
        print(f"[FETCHING] Proxy request failed for {url!r}: {exc}; assuming OK.")
        if isinstance(exc, httpx.ConnectError) and not self._warned_unreachable:
            self._warned_unreachable = True
            print(
                f"[FETCHING] Warning: fetch proxy {self._proxy_url} is unreachable. "
                "Start it with `factcheck serve` or set FETCH_PROXY_URL; "
                "citations cannot be verified without page content."
            )

    def check_status(self, url: str) -> HttpStatus:
        """Probe *url*; a failing probe is assumed OK so verification can go on."""
        try:
            response = self._request(url)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._proxy_failed(url, exc)
            return HttpStatus.assumed_ok()
        status = self._upstream_status(url, response, data)
        if status is None:
            print(f"[FETCHING] Proxy error {response.status_code} for {url!r}; assuming OK.")
            return HttpStatus.assumed_ok()
        return status

    def fetch_content(self, url: str) -> PageContent:
        """Return the page content for *url*.

        Raises:
            ContentUnavailableError: On transport failure or an empty page.
        """
        try:
            response = self._request(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ContentUnavailableError(str(exc)) from exc
        return self.content_from(data, url)

    def fetch(self, url: str) -> FetchedData:
        """Resolve status first, then content, from a single proxy round-trip."""
        result = FetchedData()
        try:
            response = self._request(url)
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._proxy_failed(url, exc)
            result.http_status = HttpStatus.assumed_ok()
            result.error = CONTENT_UNAVAILABLE
            return result

        status = self._upstream_status(url, response, data)
        if status is None:
            print(f"[FETCHING] Proxy error {response.status_code} for {url!r}; assuming OK.")
            result.http_status = HttpStatus.assumed_ok()
            result.error = CONTENT_UNAVAILABLE
            return result

        result.http_status = status
        if not status.ok:
            result.error = f"{status.code}: {status.status_text}"
            return result

        try:
            result.page_content = self.content_from(data, url)
        except ContentUnavailableError as exc:
            print(f"[FETCHING] No content for {url!r}: {exc}")
            result.error = CONTENT_UNAVAILABLE
        return result
