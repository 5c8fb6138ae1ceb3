"""Data models for the fetch phase."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

STATUS_PHRASES = {404: "Not Found", 403: "Forbidden", 500: "Server Error"}


@dataclass
class PageLink:
    """A hyperlink found on a fetched page."""

    text: str
    url: str


@dataclass
class HttpStatus:
    """Outcome of probing a URL through the fetch proxy."""

    ok: bool
    code: int
    status_text: str = "OK"
    redirect_url: Optional[str] = None

    @classmethod
    def from_code(cls, code: int, redirect_url: Optional[str] = None) -> "HttpStatus":
        ok = 200 <= code < 400
        return cls(
            ok=ok,
            code=code,
            status_text="OK" if ok else STATUS_PHRASES.get(code, "Unknown"),
            redirect_url=redirect_url,
        )

    @classmethod
    def assumed_ok(cls) -> "HttpStatus":
        """Status used when the probe itself failed (proxy hiccup)."""
        return cls(ok=True, code=200, status_text="OK")


@dataclass
class PageContent:
    """Readable text and a small link sample from a fetched page."""

    text: str
    links: List[PageLink] = field(default_factory=list)


@dataclass
class FetchedData:
    """Per-link result of the fetch phase."""

    http_status: Optional[HttpStatus] = None
    page_content: Optional[PageContent] = None
    error: Optional[str] = None

    @property
    def http_failed(self) -> bool:
        return self.http_status is not None and not self.http_status.ok
