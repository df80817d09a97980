"""Map a model-returned insight back onto its paragraph."""

from __future__ import annotations

from typing import Optional

from backend.enhance.models import InsightResult


def align_insight(paragraph: str, insight: Optional[str], index: int) -> InsightResult:
    """Locate the first exact occurrence of *insight* in *paragraph*.

    Matching is case-sensitive with no whitespace normalisation.  A
    paraphrased insight that cannot be found keeps its text but gets zeroed
    offsets.
    """
    if not insight:
        return InsightResult.empty(index)
    start = paragraph.find(insight)
    if start < 0:
        return InsightResult(index=index, insight=insight)
    return InsightResult(
        index=index,
        insight=insight,
        start_index=start,
        end_index=start + len(insight),
    )
