"""FastAPI application factory.

Routers
-------
    /api/fetch-url   — URL-fetch / text-extraction proxy used by the fetcher
    /api/openrouter  — server-side LLM proxy
    /links, /check   — link classification and the full verification run
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from factcheck.config import Settings

from factcheck.api.routers import check as check_router
from factcheck.api.routers import fetch_url as fetch_url_router
from factcheck.api.routers import llm_proxy as llm_proxy_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="FactChecker API",
        description=(
            "Extracts links from Markdown, classifies each as citation or regular "
            "link, and verifies them against the fetched page content."
        ),
        version="2.0.0",
    )
    app.state.settings = settings or Settings()

    # Allow browser frontends on any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(fetch_url_router.router, prefix="/api/fetch-url", tags=["proxy"])
    app.include_router(llm_proxy_router.router, prefix="/api/openrouter", tags=["proxy"])
    app.include_router(check_router.router, tags=["pipeline"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn factcheck.api.app:app --reload
app = create_app()
