"""Tests for outline generation: prompt formatting, validation and fallback."""

from __future__ import annotations

import asyncio
import json

import pytest

from backend.enhance.models import ArticleSection, ArticleStructure
from backend.enhance.structure import (
    fallback_structure,
    format_paragraphs,
    generate_structure,
    validate_structure,
)

_PARAGRAPHS = [f"Paragraph number {i} talks about something." for i in range(10)]


def _ranges(structure: ArticleStructure) -> list[tuple[int, int]]:
    return [(s.start_paragraph_index, s.end_paragraph_index) for s in structure.sections]


# ---------------------------------------------------------------------------
# format_paragraphs
# ---------------------------------------------------------------------------

class TestFormatParagraphs:
    def test_prefixes_indices(self) -> None:
        assert format_paragraphs(["First.", "Second."]) == "[0] First.\n\n[1] Second."

    def test_truncates_to_200_chars(self) -> None:
        formatted = format_paragraphs(["a" * 250, "b" * 200])
        first, second = formatted.split("\n\n")
        assert first == "[0] " + "a" * 200 + "..."
        assert second == "[1] " + "b" * 200


# ---------------------------------------------------------------------------
# fallback_structure
# ---------------------------------------------------------------------------

class TestFallbackStructure:
    def test_ten_paragraphs(self) -> None:
        structure = fallback_structure(_PARAGRAPHS, "Batteries")
        assert [s.title for s in structure.sections] == ["Opening", "Main Points", "Conclusion"]
        assert _ranges(structure) == [(0, 3), (4, 7), (8, 9)]
        assert [s.id for s in structure.sections] == ["section-0", "section-1", "section-2"]
        assert structure.sections[0].summary == "4 paragraphs in this section."
        assert structure.tldr == "Article: Batteries"
        assert structure.generated_title is None

    def test_covers_every_paragraph_without_gaps(self) -> None:
        for n in range(1, 12):
            ranges = _ranges(fallback_structure(_PARAGRAPHS[:1] * n, "t"))
            covered = [i for start, end in ranges for i in range(start, end + 1)]
            assert covered == list(range(n))

    def test_two_paragraphs_yield_two_sections(self) -> None:
        structure = fallback_structure(["a", "b"], "t")
        assert _ranges(structure) == [(0, 0), (1, 1)]
        assert structure.sections[0].summary == "1 paragraph in this section."

    def test_empty(self) -> None:
        assert fallback_structure([], "t").sections == []


# ---------------------------------------------------------------------------
# validate_structure
# ---------------------------------------------------------------------------

class TestValidateStructure:
    def test_clamps_indices(self) -> None:
        parsed = {
            "sections": [
                {"id": "intro", "title": "Intro", "summary": "s",
                 "startParagraphIndex": -4, "endParagraphIndex": 2, "level": 1},
                {"id": "body", "title": "Body", "summary": "s",
                 "startParagraphIndex": 3, "endParagraphIndex": 99, "level": 2},
            ],
            "generatedTitle": "A Better Title",
            "tldr": "Short version.",
        }
        structure = validate_structure(parsed, 10)
        assert structure is not None
        assert _ranges(structure) == [(0, 2), (3, 9)]
        assert [s.level for s in structure.sections] == [1, 2]
        assert structure.generated_title == "A Better Title"
        assert structure.tldr == "Short version."

    def test_defaults_missing_fields(self) -> None:
        structure = validate_structure({"sections": [{"startParagraphIndex": 2}]}, 5)
        assert structure is not None
        section = structure.sections[0]
        assert section == ArticleSection(
            id="section-0", title="Section 1", summary="",
            start_paragraph_index=2, end_paragraph_index=2, level=1,
        )

    def test_end_never_before_start(self) -> None:
        parsed = {"sections": [{"startParagraphIndex": 6, "endParagraphIndex": 1}]}
        structure = validate_structure(parsed, 10)
        assert _ranges(structure) == [(6, 6)]  # type: ignore[arg-type]

    def test_sorted_by_start(self) -> None:
        parsed = {"sections": [
            {"startParagraphIndex": 5, "endParagraphIndex": 9},
            {"startParagraphIndex": 0, "endParagraphIndex": 4},
        ]}
        structure = validate_structure(parsed, 10)
        assert _ranges(structure) == [(0, 4), (5, 9)]  # type: ignore[arg-type]

    def test_drops_sections_with_unusable_indices(self) -> None:
        parsed = {"sections": [
            {"startParagraphIndex": "soon", "endParagraphIndex": 2},
            "not a dict",
            {"startParagraphIndex": 1, "endParagraphIndex": 2},
        ]}
        structure = validate_structure(parsed, 10)
        assert _ranges(structure) == [(1, 2)]  # type: ignore[arg-type]

    def test_unknown_level_becomes_one(self) -> None:
        parsed = {"sections": [{"startParagraphIndex": 0, "endParagraphIndex": 0, "level": 7}]}
        assert validate_structure(parsed, 1).sections[0].level == 1  # type: ignore[union-attr]

    @pytest.mark.parametrize(
        "parsed",
        [{}, {"sections": "nope"}, {"sections": []}, {"sections": [None, 3]}],
    )
    def test_unusable_returns_none(self, parsed) -> None:
        assert validate_structure(parsed, 4) is None

    def test_null_strings_are_dropped(self) -> None:
        parsed = {
            "sections": [{"startParagraphIndex": 0, "endParagraphIndex": 0}],
            "generatedTitle": "null",
            "tldr": "   ",
        }
        structure = validate_structure(parsed, 1)
        assert structure.generated_title is None  # type: ignore[union-attr]
        assert structure.to_dict() == {  # type: ignore[union-attr]
            "sections": [{
                "id": "section-0", "title": "Section 1", "summary": "",
                "startParagraphIndex": 0, "endParagraphIndex": 0, "level": 1,
            }],
        }


# ---------------------------------------------------------------------------
# generate_structure
# ---------------------------------------------------------------------------

class TestGenerateStructure:
    def test_uses_model_response(self, make_generator) -> None:
        reply = json.dumps({
            "sections": [
                {"id": "s1", "title": "Setup", "summary": "Why.",
                 "startParagraphIndex": 0, "endParagraphIndex": 4, "level": 1},
                {"id": "s2", "title": "Results", "summary": "What.",
                 "startParagraphIndex": 5, "endParagraphIndex": 9, "level": 1},
            ],
            "tldr": "It works.",
        })
        generator = make_generator(lambda prompt: reply)
        structure = asyncio.run(generate_structure(_PARAGRAPHS, "Batteries", generator))

        assert [s.title for s in structure.sections] == ["Setup", "Results"]
        assert structure.tldr == "It works."
        prompt = generator.prompts[0]
        assert "Batteries" in prompt
        assert "[9] Paragraph number 9" in prompt

    def test_model_error_falls_back(self, make_generator) -> None:
        generator = make_generator(lambda prompt: RuntimeError("down"))
        structure = asyncio.run(generate_structure(_PARAGRAPHS, "Batteries", generator))
        assert _ranges(structure) == [(0, 3), (4, 7), (8, 9)]

    @pytest.mark.parametrize("reply", ["I cannot help", '{"title": "no sections"}'])
    def test_unusable_response_falls_back(self, make_generator, reply: str) -> None:
        structure = asyncio.run(
            generate_structure(_PARAGRAPHS, "Batteries", make_generator(lambda prompt: reply))
        )
        assert structure.tldr == "Article: Batteries"
        assert len(structure.sections) == 3

    def test_missing_title_uses_default(self, make_generator) -> None:
        generator = make_generator(lambda prompt: "garbage")
        structure = asyncio.run(generate_structure(_PARAGRAPHS, None, generator))
        assert structure.tldr == "Article: Untitled Article"
        assert "Untitled Article" in generator.prompts[0]
