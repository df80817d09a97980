"""Batched, streamed insight enhancement.

Paragraphs are processed in fixed-size batches.  Within a batch every
paragraph is sent to the generation service concurrently; the batch is
awaited as a whole, sorted by paragraph index and emitted before the next
batch starts.  In-flight model calls are therefore capped at the batch size
and the emitted indices are always ``0..N-1`` in order.

Failures are local: a model error or unparsable response yields a null
insight for that paragraph and never aborts the stream.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Sequence

from backend.config import settings
from backend.enhance.aligner import align_insight
from backend.enhance.models import InsightResult
from backend.enhance.prompts import ENHANCEMENT_PROMPT
from backend.llm import TextGenerator, parse_json_response

logger = logging.getLogger(__name__)

# Paragraphs shorter than this never reach the model.
MIN_ENHANCE_CHARS = 50


async def enhance_paragraph(text: str, index: int, generator: TextGenerator) -> InsightResult:
    """Return the insight for a single paragraph; never raises."""
    if len(text) < MIN_ENHANCE_CHARS:
        return InsightResult.empty(index)

    try:
        response = await generator.generate(ENHANCEMENT_PROMPT.replace("{paragraph}", text))
    except Exception:  # noqa: BLE001
        logger.exception("[enhance] Model call failed for paragraph %d", index)
        return InsightResult.empty(index)

    parsed = parse_json_response(response)
    if parsed is None:
        logger.warning("[enhance] Unparsable response for paragraph %d", index)
        return InsightResult.empty(index)

    insight = parsed.get("insight")
    if not isinstance(insight, str):
        return InsightResult.empty(index)
    return align_insight(text, insight, index)


async def enhance_batch(
    batch: Sequence[str],
    start_index: int,
    generator: TextGenerator,
) -> List[InsightResult]:
    """Enhance *batch* concurrently and return results sorted by index."""
    results = await asyncio.gather(
        *(
            enhance_paragraph(text, start_index + offset, generator)
            for offset, text in enumerate(batch)
        )
    )
    return sorted(results, key=lambda result: result.index)


def enhance_stream(
    paragraphs: Sequence[str],
    generator: TextGenerator,
    batch_size: Optional[int] = None,
) -> AsyncIterator[InsightResult]:
    """Return an async iterator over one :class:`InsightResult` per paragraph.

    Input is validated eagerly; model calls start on first iteration.

    Raises:
        ValueError: If *paragraphs* is not a non-empty sequence of strings.
    """
    if isinstance(paragraphs, (str, bytes)) or not isinstance(paragraphs, Sequence):
        raise ValueError("paragraphs must be a list of strings")
    if not paragraphs:
        raise ValueError("paragraphs must not be empty")

    size = batch_size or settings.enhance_batch_size
    logger.info("[enhance] Enhancing %d paragraphs in batches of %d", len(paragraphs), size)
    return _stream_batches(paragraphs, generator, size)


async def _stream_batches(
    paragraphs: Sequence[str],
    generator: TextGenerator,
    size: int,
) -> AsyncIterator[InsightResult]:
    for start in range(0, len(paragraphs), size):
        batch = paragraphs[start:start + size]
        for result in await enhance_batch(batch, start, generator):
            yield result
