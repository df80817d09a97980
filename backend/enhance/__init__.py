"""Enhancement package: insights, alignment and article structure."""

from backend.enhance.aligner import align_insight
from backend.enhance.models import ArticleSection, ArticleStructure, InsightResult
from backend.enhance.orchestrator import enhance_paragraph, enhance_stream
from backend.enhance.structure import fallback_structure, generate_structure

__all__ = [
    "align_insight",
    "enhance_paragraph",
    "enhance_stream",
    "generate_structure",
    "fallback_structure",
    "InsightResult",
    "ArticleSection",
    "ArticleStructure",
]
