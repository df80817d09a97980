"""Client-side reassembly of streamed enhancement results.

A :class:`ReadingSession` owns the canonical paragraph state for one reading
session.  Paragraphs get a provisional insight from a local heuristic as soon
as they are known, so a reader never waits on the model.  Insight and
structure events then arrive over explicit async channels and are merged by
paragraph index:

* an :class:`InsightResult` overwrites its paragraph (idempotent; unknown
  indices are ignored);
* an :class:`ArticleStructure` replaces the whole outline at once.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, List, Optional, Sequence, Union

from bs4 import BeautifulSoup

from backend.enhance.models import ArticleSection, ArticleStructure, InsightResult
from backend.enhance.orchestrator import enhance_stream
from backend.enhance.structure import generate_structure
from backend.llm import TextGenerator

logger = logging.getLogger(__name__)

ReaderEvent = Union[InsightResult, ArticleStructure]

_FIRST_SENTENCE = re.compile(r"^[^.!?]+[.!?]")
MIN_SENTENCE_CHARS = 20


@dataclass
class ParagraphState:
    index: int
    html: str
    insight_text: Optional[str] = None
    is_enhanced: bool = False
    is_enhancing: bool = False


def provisional_insight(html: str) -> Optional[str]:
    """Pick an insight without the model.

    Bold/strong spans already in the markup win (joined with spaces);
    otherwise the first sentence, if it is longer than 20 characters.
    """
    soup = BeautifulSoup(html, "html.parser")
    bold = [el.get_text().strip() for el in soup.find_all(["strong", "b"])]
    bold = [text for text in bold if text]
    if bold:
        return " ".join(bold)

    match = _FIRST_SENTENCE.match(soup.get_text().strip())
    if match:
        sentence = match.group(0).strip()
        if len(sentence) > MIN_SENTENCE_CHARS:
            return sentence
    return None


class ReadingSession:
    """Paragraph and structure state for a single reader."""

    def __init__(self) -> None:
        self.paragraphs: List[ParagraphState] = []
        self.structure: Optional[ArticleStructure] = None
        self.is_loading_structure = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize_paragraphs(self, htmls: Sequence[str]) -> None:
        """Replace all paragraphs, each pre-filled with a provisional insight."""
        self.paragraphs = [
            ParagraphState(
                index=i,
                html=html,
                insight_text=provisional_insight(html),
                is_enhanced=True,
                is_enhancing=False,
            )
            for i, html in enumerate(htmls)
        ]
        self.structure = None
        logger.debug("[session] Initialised %d paragraphs", len(self.paragraphs))

    def apply_insight(self, index: int, insight_text: Optional[str]) -> bool:
        """Overwrite the insight of paragraph *index*.

        Returns ``False`` (and changes nothing) for indices outside the
        current paragraph list.
        """
        if not 0 <= index < len(self.paragraphs):
            logger.debug("[session] Ignoring insight for unknown paragraph %d", index)
            return False
        paragraph = self.paragraphs[index]
        paragraph.insight_text = insight_text
        paragraph.is_enhanced = True
        paragraph.is_enhancing = False
        return True

    def set_structure(self, structure: ArticleStructure) -> None:
        self.structure = structure
        self.is_loading_structure = False

    def apply(self, event: ReaderEvent) -> None:
        if isinstance(event, InsightResult):
            self.apply_insight(event.index, event.insight)
        elif isinstance(event, ArticleStructure):
            self.set_structure(event)
        else:
            raise TypeError(f"Unsupported reader event: {type(event).__name__}")

    async def consume(self, events: AsyncIterable[ReaderEvent]) -> None:
        """Apply every event from *events* in arrival order."""
        async for event in events:
            self.apply(event)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def enhanced_count(self) -> int:
        return sum(1 for p in self.paragraphs if p.is_enhanced)

    @property
    def enhancement_progress(self) -> float:
        if not self.paragraphs:
            return 0.0
        return self.enhanced_count / len(self.paragraphs) * 100

    @property
    def is_enhancing(self) -> bool:
        return self.enhanced_count < len(self.paragraphs)

    def section_for(self, paragraph_index: int) -> Optional[ArticleSection]:
        """Return the last section whose range covers *paragraph_index*."""
        if self.structure is None:
            return None
        found = None
        for section in self.structure.sections:
            if section.contains(paragraph_index):
                found = section
        return found


async def _structure_events(
    paragraphs: Sequence[str],
    title: Optional[str],
    generator: TextGenerator,
) -> AsyncIterator[ArticleStructure]:
    yield await generate_structure(paragraphs, title, generator)


async def enhance_article(
    session: ReadingSession,
    paragraphs: Sequence[str],
    title: Optional[str],
    generator: TextGenerator,
) -> ReadingSession:
    """Initialise *session* and run enhancement and structure concurrently."""
    session.initialize_paragraphs(paragraphs)
    if not paragraphs:
        return session
    session.is_loading_structure = True
    await asyncio.gather(
        session.consume(enhance_stream(paragraphs, generator)),
        session.consume(_structure_events(paragraphs, title, generator)),
    )
    return session
