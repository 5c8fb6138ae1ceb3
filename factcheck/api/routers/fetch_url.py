"""URL-fetch proxy — the content-extraction service used by the fetcher.

Routes
------
GET     /api/fetch-url?url=<encoded target>
OPTIONS /api/fetch-url                          → CORS preflight (204)

Success body::

    {"text": "...", "links": [{"text": "...", "url": "..."}],
     "status": {"url": "<final url>", "content_type": "...", "http_code": 200}}

Errors carry ``{"error": "..."}`` and permissive CORS headers: 400 for a
missing or invalid ``url``, the upstream status when the page itself fails,
502/504 when the upstream cannot be reached, 500 for anything else.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from factcheck.scraper.extractor import extract_text_and_links

router = APIRouter()

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
_PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}
_UPSTREAM_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; FactChecker/2.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_TEXTUAL_TYPES = ("html", "xml", "text/")
_LINK_SAMPLE = 10


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code, headers=CORS_HEADERS)


def _valid_target(target: str) -> bool:
    parsed = urlparse(target)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.options("")
def fetch_url_preflight() -> Response:
    return Response(status_code=204, headers=_PREFLIGHT_HEADERS)


@router.get("")
def fetch_url(request: Request, url: Optional[str] = None) -> Response:
    """Fetch *url* server-side and return its readable text and a link sample."""
    settings = request.app.state.settings

    if not url:
        return _error("Missing url parameter", 400)
    if not _valid_target(url):
        return _error("Invalid URL", 400)

    print(f"[fetch-url] Fetching: {url}")
    try:
        with httpx.Client(
            headers=_UPSTREAM_HEADERS,
            timeout=settings.upstream_fetch_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)

        if response.is_error:
            return _error(
                f"Failed to fetch: {response.status_code} {response.reason_phrase}",
                response.status_code,
                status=response.status_code,
            )

        final_url = str(response.url)
        content_type = response.headers.get("content-type", "")
        if any(t in content_type.lower() for t in _TEXTUAL_TYPES) or not content_type:
            text, links = extract_text_and_links(
                response.text,
                final_url,
                text_limit=settings.proxy_text_limit,
                links_limit=_LINK_SAMPLE,
            )
        else:
            text, links = "", []

        return JSONResponse(
            {
                "text": text,
                "links": [{"text": link.text, "url": link.url} for link in links],
                "status": {
                    "url": final_url,
                    "content_type": content_type or None,
                    "http_code": response.status_code,
                },
            },
            headers={**CORS_HEADERS, "Cache-Control": "public, max-age=300"},
        )

    except httpx.TimeoutException as exc:
        print(f"[fetch-url] Timeout: {url}")
        return _error(f"Upstream timeout: {exc}", 504)
    except httpx.HTTPError as exc:
        print(f"[fetch-url] Upstream unreachable: {url}: {exc}")
        return _error(f"Upstream unreachable: {exc}", 502)
    except Exception as exc:  # noqa: BLE001
        print(f"[fetch-url] Error: {exc!r}")
        return _error(str(exc) or "Internal server error", 500, details=repr(exc))
