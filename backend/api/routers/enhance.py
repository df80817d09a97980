"""Insight enhancement endpoints with Server-Sent Events (SSE) streaming.

Routes
------
POST /enhance           Body: {"paragraphs": ["...", ...]}    SSE stream
POST /enhance/single    Body: {"paragraph": "..."}            one InsightResult

SSE event format
----------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"index": 0, "insight": "...", "startIndex": 12, "endIndex": 58}

    data: {"error": "Enhancement failed"}

    data: {"done": true}

Results arrive batch by batch in paragraph order.  ``done`` is always the
last event, including after an ``error``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from backend.config import settings
from backend.enhance.orchestrator import enhance_paragraph, enhance_stream
from backend.llm import TextGenerator, get_generator

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class EnhanceRequest(BaseModel):
    paragraphs: Optional[List[str]] = None


class SingleEnhanceRequest(BaseModel):
    paragraph: Optional[str] = None


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload)}\n\n"


async def _enhance_sse_generator(
    paragraphs: List[str],
    generator: TextGenerator,
) -> AsyncIterator[str]:
    """Yield SSE-formatted strings for the duration of an enhancement run.

    If the client disconnects, Starlette cancels this generator; the
    cancellation propagates and nothing further is written.
    """
    sent = 0
    try:
        async for result in enhance_stream(paragraphs, generator):
            yield _sse(result.to_dict())
            sent += 1
    except Exception:  # noqa: BLE001
        logger.exception("[enhance] Enhancement failed after %d results", sent)
        yield _sse({"error": "Enhancement failed"})
    yield _sse({"done": True})
    logger.info("[enhance] Stream finished (%d/%d results)", sent, len(paragraphs))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/enhance", response_model=None)
async def enhance_endpoint(
    body: EnhanceRequest,
    request: Request,
    generator: TextGenerator = Depends(get_generator),
) -> Any:
    """Stream one insight per paragraph as SSE."""
    if body.paragraphs is None:
        return JSONResponse(status_code=400, content={"error": "paragraphs array required"})
    if not body.paragraphs:
        return JSONResponse(status_code=400, content={"error": "paragraphs array cannot be empty"})

    origin = request.headers.get("origin") or settings.default_origin
    return StreamingResponse(
        _enhance_sse_generator(body.paragraphs, generator),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


@router.post("/enhance/single", response_model=None)
async def enhance_single_endpoint(
    body: SingleEnhanceRequest,
    generator: TextGenerator = Depends(get_generator),
) -> Any:
    """Enhance a single paragraph and return its :class:`InsightResult`."""
    if not body.paragraph:
        return JSONResponse(status_code=400, content={"error": "paragraph string required"})
    try:
        result = await enhance_paragraph(body.paragraph, 0, generator)
    except Exception:  # noqa: BLE001
        logger.exception("[enhance] Single-paragraph enhancement failed")
        return JSONResponse(status_code=500, content={"error": "Enhancement failed"})
    return result.to_dict()
