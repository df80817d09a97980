"""Article structure endpoint.

Routes
------
POST /structure    Body: {"paragraphs": ["...", ...], "title": "..."}
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.enhance.structure import generate_structure
from backend.llm import TextGenerator, get_generator

logger = logging.getLogger(__name__)

router = APIRouter()


class StructureRequest(BaseModel):
    paragraphs: Optional[List[str]] = None
    title: Optional[str] = None


@router.post("/structure", response_model=None)
async def structure_endpoint(
    body: StructureRequest,
    generator: TextGenerator = Depends(get_generator),
) -> Any:
    """Return a section outline for the article's paragraphs."""
    if body.paragraphs is None:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "paragraphs array required"},
        )
    if not body.paragraphs:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "paragraphs array cannot be empty"},
        )

    try:
        structure = await generate_structure(body.paragraphs, body.title, generator)
    except Exception:  # noqa: BLE001
        logger.exception("[structure] Structure generation failed")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to generate article structure"},
        )
    return {"success": True, "structure": structure.to_dict()}
