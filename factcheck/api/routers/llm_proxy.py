"""LLM proxy — forwards chat completions to OpenRouter with the server key.

Routes
------
POST    /api/openrouter    Body: {"model"?, "messages": [...], "temperature"?}
GET     /api/openrouter    → {"ok": true, "route": "/api/openrouter"}
OPTIONS /api/openrouter    → 204
other methods              → 405 {"error": "..."}

The upstream status code and body are relayed unchanged.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse, Response

router = APIRouter()

ROUTE = "/api/openrouter"


@router.get("")
def llm_proxy_health() -> dict[str, Any]:
    return {"ok": True, "route": ROUTE}


@router.options("")
def llm_proxy_preflight() -> Response:
    return Response(status_code=204)


@router.api_route("", methods=["PUT", "PATCH", "DELETE"])
def llm_proxy_method_not_allowed(request: Request) -> JSONResponse:
    return JSONResponse(
        {"error": f"Method {request.method} not allowed"},
        status_code=405,
        headers={"Allow": "GET, POST, OPTIONS"},
    )


@router.post("")
def llm_proxy(request: Request, body: Optional[dict[str, Any]] = Body(default=None)) -> Response:
    """Relay one chat-completion request to OpenRouter."""
    settings = request.app.state.settings
    body = body or {}

    messages = body.get("messages")
    if not isinstance(messages, list) or not messages:
        return JSONResponse({"error": "Missing messages array"}, status_code=400)
    if not settings.openrouter_api_key:
        return JSONResponse({"error": "OPENROUTER_API_KEY not configured"}, status_code=500)

    payload: dict[str, Any] = {
        "model": body.get("model") or settings.openrouter_model,
        "messages": messages,
    }
    if body.get("temperature") is not None:
        payload["temperature"] = body["temperature"]

    try:
        with httpx.Client(timeout=settings.llm_timeout) as client:
            upstream = client.post(
                f"{settings.openrouter_base_url.rstrip('/')}/chat/completions",
                headers={
                    "Authorization": f"Bearer {settings.openrouter_api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
    except Exception as exc:  # noqa: BLE001
        print(f"[openrouter] Proxy error: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=500)

    if upstream.is_error:
        print(f"[openrouter] Upstream error: {upstream.status_code} {upstream.text[:200]}")

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type="application/json",
    )
