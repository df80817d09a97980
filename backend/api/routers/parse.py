"""Pasted-content endpoint.

Routes
------
POST /parse    Body: {"content": "..."}    → parse_pasted_content
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.config import settings
from backend.llm import TextGenerator, get_generator, is_configured
from backend.scraper.models import ParseFailure, ParseSuccess
from backend.scraper.paste import parse_pasted_content, refine_with_llm

logger = logging.getLogger(__name__)

router = APIRouter()

# Caller-fault rejections; anything else is an extraction failure.
_INPUT_REJECTIONS = {"MISSING_CONTENT", "TOO_SHORT", "IS_URL", "IS_CODE"}


class ParseRequest(BaseModel):
    content: Optional[str] = None


@router.post("/parse", response_model=None)
async def parse_endpoint(
    body: ParseRequest,
    generator: TextGenerator = Depends(get_generator),
) -> Any:
    """Turn pasted text, markdown or HTML into a structured article."""
    outcome = parse_pasted_content(body.content)
    if isinstance(outcome, ParseFailure):
        status = 400 if outcome.code in _INPUT_REJECTIONS else 422
        return JSONResponse(status_code=status, content=outcome.to_dict())

    if settings.paste_ai_refine and is_configured():
        outcome = ParseSuccess(
            article=await refine_with_llm(outcome.article, body.content or "", generator)
        )

    article = outcome.article
    logger.info(
        "[parse] Success: %r (%d words, %d paragraphs)",
        article.title,
        article.word_count,
        len(article.paragraphs),
    )
    return outcome.to_dict()
