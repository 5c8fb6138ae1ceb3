"""Pipeline endpoints.

Routes
------
POST /links    Body: {"markdown": "...", "heuristic_only": false}
               → extracted and classified links
POST /check    Body: {"markdown": "..."}
               → Server-Sent Events while the full pipeline runs

SSE event format
----------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"event": "links",  "links": [...]}
    data: {"event": "update", "index": 0, "result": {...}}
    data: {"event": "done",   "results": [...]}
    data: {"event": "error",  "detail": "..."}
"""

from __future__ import annotations

import asyncio
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, List

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from factcheck.config import Settings
from factcheck.errors import ConfigurationError
from factcheck.extractor.models import Link
from factcheck.runner import FactCheckPipeline
from factcheck.verifier.models import VerificationResult

router = APIRouter()

# Pipeline runs block on network I/O; keep a small dedicated pool.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="factcheck")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DocumentRequest(BaseModel):
    markdown: str
    heuristic_only: bool = False


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload)}\n\n"


class _QueueRenderer:
    """Renderer that forwards table/row events onto an asyncio queue."""

    def __init__(self, put) -> None:
        self._put = put

    def render(self, links: List[Link]) -> None:
        self._put({"event": "links", "links": [link.to_dict() for link in links]})

    def update(self, index: int, result: VerificationResult) -> None:
        self._put({"event": "update", "index": index, "result": result.to_dict()})


# ---------------------------------------------------------------------------
# Background runner
# ---------------------------------------------------------------------------

def _run_check(
    markdown: str,
    settings: Settings,
    queue: "asyncio.Queue[str | None]",
    loop: asyncio.AbstractEventLoop,
    cancel: threading.Event,
) -> None:
    """Run the pipeline and push SSE strings into *queue*; ``None`` marks the end."""
    def _put(payload: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, _sse(payload))

    try:
        pipeline = FactCheckPipeline(settings)
        results = pipeline.run(markdown, renderer=_QueueRenderer(_put), cancel=cancel)
        _put({"event": "done", "results": [r.to_dict() for r in results]})
    except Exception as exc:  # noqa: BLE001
        _put({"event": "error", "detail": str(exc)})
    finally:
        loop.call_soon_threadsafe(queue.put_nowait, None)  # sentinel


async def _check_sse_generator(markdown: str, settings: Settings) -> AsyncIterator[str]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    cancel = threading.Event()

    future = loop.run_in_executor(_executor, _run_check, markdown, settings, queue, loop, cancel)

    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
    finally:
        # Client went away or the run finished; stop at the next batch boundary.
        cancel.set()
        try:
            await asyncio.shield(future)
        except Exception:  # noqa: BLE001
            pass


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/links")
def classify_document(body: DocumentRequest, request: Request) -> list[dict[str, Any]]:
    """Extract the links of a document and label each as citation or regular."""
    pipeline = FactCheckPipeline(request.app.state.settings)
    links = pipeline.extract(body.markdown)
    try:
        pipeline.classify(links, heuristic_only=body.heuristic_only)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [link.to_dict() for link in links]


@router.post("/check")
async def check_document(body: DocumentRequest, request: Request) -> StreamingResponse:
    """Run the full pipeline and stream every status change as SSE."""
    return StreamingResponse(
        _check_sse_generator(body.markdown, request.app.state.settings),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )
