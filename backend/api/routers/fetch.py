"""URL fetch endpoint.

Routes
------
POST /fetch    Body: {"url": "https://..."}    → fetch_and_extract
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.scraper.models import FetchFailure
from backend.scraper.pipeline import fetch_and_extract

router = APIRouter()


class FetchRequest(BaseModel):
    url: Optional[str] = None


@router.post("/fetch", response_model=None)
async def fetch_endpoint(body: FetchRequest) -> Any:
    """Fetch a URL and return the extracted article.

    Failures come back as ``{"success": false, "error", "code", "suggestion"?}``
    with HTTP 422 (400 when no URL was supplied at all).
    """
    if not body.url or not body.url.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "URL is required", "code": "INVALID_URL"},
        )

    outcome = await fetch_and_extract(body.url)
    if isinstance(outcome, FetchFailure):
        return JSONResponse(status_code=422, content=outcome.to_dict())
    return outcome.to_dict()
