"""Result types produced by the enhancement layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class InsightResult:
    """The insight chosen for one paragraph.

    ``start_index``/``end_index`` are offsets into the paragraph text.  Both
    are 0 when there is no insight or when the insight could not be located
    verbatim in the paragraph.
    """

    index: int
    insight: Optional[str] = None
    start_index: int = 0
    end_index: int = 0

    @classmethod
    def empty(cls, index: int) -> "InsightResult":
        return cls(index=index)

    @property
    def is_located(self) -> bool:
        return self.insight is not None and self.end_index > self.start_index

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "insight": self.insight,
            "startIndex": self.start_index,
            "endIndex": self.end_index,
        }


@dataclass
class ArticleSection:
    id: str
    title: str
    summary: str
    start_paragraph_index: int
    end_paragraph_index: int
    level: int = 1

    def contains(self, paragraph_index: int) -> bool:
        return self.start_paragraph_index <= paragraph_index <= self.end_paragraph_index

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "startParagraphIndex": self.start_paragraph_index,
            "endParagraphIndex": self.end_paragraph_index,
            "level": self.level,
        }


@dataclass
class ArticleStructure:
    sections: List[ArticleSection] = field(default_factory=list)
    generated_title: Optional[str] = None
    tldr: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"sections": [s.to_dict() for s in self.sections]}
        if self.generated_title:
            payload["generatedTitle"] = self.generated_title
        if self.tldr:
            payload["tldr"] = self.tldr
        return payload
