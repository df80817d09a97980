"""Reader package: client-side reassembly of enhancement results."""

from backend.reader.session import ParagraphState, ReadingSession, enhance_article

__all__ = ["ReadingSession", "ParagraphState", "enhance_article"]
