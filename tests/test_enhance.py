"""Tests for insight alignment, JSON recovery and batched enhancement.

The generation service is replaced by ``ScriptedGenerator`` (see
``conftest.py``); ``LangChainGenerator`` is exercised against a mocked chat
model so no provider is contacted.
"""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from backend import llm
from backend.enhance.aligner import align_insight
from backend.enhance.models import InsightResult
from backend.enhance.orchestrator import (
    enhance_batch,
    enhance_paragraph,
    enhance_stream,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _paragraph(i: int) -> str:
    return (
        f"Paragraph {i} opens with some context. "
        f"The key finding for paragraph {i} is stated right here. "
        "It then closes with a little more detail."
    )


def _body(prompt: str) -> str:
    """The paragraph embedded between the prompt's triple quotes."""
    return prompt.split('"""')[1].strip()


def _quote_second_sentence(prompt: str) -> str:
    sentence = _body(prompt).split(". ")[1] + "."
    return json.dumps({"insight": sentence})


async def _collect(iterator) -> list[InsightResult]:
    return [result async for result in iterator]


# ---------------------------------------------------------------------------
# align_insight
# ---------------------------------------------------------------------------

class TestAlignInsight:
    def test_locates_exact_substring(self) -> None:
        text = "Intro. The core claim lives here. Outro."
        result = align_insight(text, "The core claim lives here.", 4)
        assert result == InsightResult(index=4, insight="The core claim lives here.",
                                       start_index=7, end_index=33)
        assert text[result.start_index:result.end_index] == result.insight
        assert result.is_located

    def test_first_occurrence_wins(self) -> None:
        result = align_insight("echo echo", "echo", 0)
        assert (result.start_index, result.end_index) == (0, 4)

    def test_case_sensitive(self) -> None:
        result = align_insight("The Claim.", "the claim.", 1)
        assert result.insight == "the claim."
        assert (result.start_index, result.end_index) == (0, 0)
        assert not result.is_located

    @pytest.mark.parametrize("insight", [None, ""])
    def test_no_insight(self, insight) -> None:
        result = align_insight("Some paragraph.", insight, 2)
        assert result == InsightResult.empty(2)
        assert result.to_dict() == {"index": 2, "insight": None, "startIndex": 0, "endIndex": 0}


# ---------------------------------------------------------------------------
# parse_json_response
# ---------------------------------------------------------------------------

class TestParseJsonResponse:
    def test_strict_json(self) -> None:
        assert llm.parse_json_response('{"insight": "x"}') == {"insight": "x"}

    def test_json_inside_prose_and_fences(self) -> None:
        text = 'Here you go:\n```json\n{"insight": null}\n```'
        assert llm.parse_json_response(text) == {"insight": None}

    @pytest.mark.parametrize("text", ["no braces", "{broken", "[1, 2]", "{not: json}", None])
    def test_unrecoverable(self, text) -> None:
        assert llm.parse_json_response(text) is None


# ---------------------------------------------------------------------------
# Generation-service client
# ---------------------------------------------------------------------------

class TestLangChainGenerator:
    def test_returns_message_content(self) -> None:
        chat = SimpleNamespace(ainvoke=AsyncMock(return_value=SimpleNamespace(content="hello")))
        generator = llm.LangChainGenerator(llm=chat)
        assert asyncio.run(generator.generate("prompt")) == "hello"
        chat.ainvoke.assert_awaited_once_with("prompt")

    def test_joins_content_parts(self) -> None:
        message = SimpleNamespace(content=[{"type": "text", "text": "a"}, "b"])
        chat = SimpleNamespace(ainvoke=AsyncMock(return_value=message))
        generator = llm.LangChainGenerator(llm=chat)
        assert asyncio.run(generator.generate("prompt")) == "ab"

    def test_openai_needs_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(llm.settings, "llm_provider", "openai")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert llm.is_configured() is False
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert llm.is_configured() is True


# ---------------------------------------------------------------------------
# enhance_paragraph
# ---------------------------------------------------------------------------

class TestEnhanceParagraph:
    def test_short_paragraph_skips_model(self, make_generator) -> None:
        generator = make_generator()
        result = asyncio.run(enhance_paragraph("x" * 49, 3, generator))
        assert result == InsightResult.empty(3)
        assert generator.prompts == []

    def test_prompt_carries_paragraph(self, make_generator) -> None:
        generator = make_generator()
        asyncio.run(enhance_paragraph(_paragraph(0), 0, generator))
        assert _body(generator.prompts[0]) == _paragraph(0)

    def test_aligned_insight(self, make_generator) -> None:
        generator = make_generator(_quote_second_sentence)
        result = asyncio.run(enhance_paragraph(_paragraph(1), 1, generator))
        expected = "The key finding for paragraph 1 is stated right here."
        assert result.insight == expected
        assert _paragraph(1)[result.start_index:result.end_index] == expected

    def test_paraphrase_keeps_text_with_zero_offsets(self, make_generator) -> None:
        generator = make_generator(lambda prompt: '{"insight": "A paraphrase."}')
        result = asyncio.run(enhance_paragraph(_paragraph(0), 0, generator))
        assert result == InsightResult(index=0, insight="A paraphrase.")

    @pytest.mark.parametrize(
        "reply",
        [RuntimeError("boom"), "not json", '{"insight": 42}', '{"insight": null}'],
    )
    def test_failures_yield_null_insight(self, make_generator, reply) -> None:
        generator = make_generator(lambda prompt: reply)
        result = asyncio.run(enhance_paragraph(_paragraph(0), 5, generator))
        assert result == InsightResult.empty(5)


# ---------------------------------------------------------------------------
# enhance_batch / enhance_stream
# ---------------------------------------------------------------------------

class TestEnhanceBatch:
    def test_sorted_by_index_despite_completion_order(self) -> None:
        class _Reversed:
            """Later paragraphs finish first."""

            async def generate(self, prompt: str) -> str:
                index = int(_body(prompt).split()[1])
                await asyncio.sleep(0.01 * (3 - index))
                return _quote_second_sentence(prompt)

        paragraphs = [_paragraph(i) for i in range(3)]
        results = asyncio.run(enhance_batch(paragraphs, 0, _Reversed()))
        assert [r.index for r in results] == [0, 1, 2]

    def test_offsets_indices_by_start(self, make_generator) -> None:
        results = asyncio.run(enhance_batch([_paragraph(0)], 6, make_generator()))
        assert results[0].index == 6


class TestEnhanceStream:
    def test_one_result_per_paragraph_in_order(self, make_generator) -> None:
        paragraphs = [_paragraph(i) for i in range(7)]
        generator = make_generator(_quote_second_sentence)
        results = asyncio.run(_collect(enhance_stream(paragraphs, generator, batch_size=3)))

        assert [r.index for r in results] == list(range(7))
        for result, text in zip(results, paragraphs):
            assert text[result.start_index:result.end_index] == result.insight

    def test_concurrency_capped_at_batch_size(self, make_generator) -> None:
        paragraphs = [_paragraph(i) for i in range(7)]
        generator = make_generator(delay=0.01)
        asyncio.run(_collect(enhance_stream(paragraphs, generator, batch_size=3)))

        assert len(generator.prompts) == 7
        assert generator.max_in_flight == 3

    def test_batches_are_sequential(self, make_generator) -> None:
        """Each batch is emitted before the next one is submitted."""
        paragraphs = [_paragraph(i) for i in range(7)]
        generator = make_generator(delay=0.01)
        seen_prompts: list[int] = []

        async def _run() -> None:
            async for _ in enhance_stream(paragraphs, generator, batch_size=3):
                seen_prompts.append(len(generator.prompts))

        asyncio.run(_run())
        assert seen_prompts == [3, 3, 3, 6, 6, 6, 7]

    def test_short_paragraph_is_not_sent(self, make_generator) -> None:
        paragraphs = [_paragraph(0), "Too short.", _paragraph(2)]
        generator = make_generator(_quote_second_sentence)
        results = asyncio.run(_collect(enhance_stream(paragraphs, generator)))

        assert len(generator.prompts) == 2
        assert results[1] == InsightResult.empty(1)

    def test_one_failure_does_not_abort(self, make_generator) -> None:
        def reply(prompt: str):
            if "paragraph 1 " in prompt:
                return RuntimeError("rate limited")
            return _quote_second_sentence(prompt)

        paragraphs = [_paragraph(i) for i in range(3)]
        results = asyncio.run(_collect(enhance_stream(paragraphs, make_generator(reply))))

        assert [r.insight is not None for r in results] == [True, False, True]

    def test_uses_configured_batch_size(self, make_generator, monkeypatch) -> None:
        monkeypatch.setattr("backend.enhance.orchestrator.settings.enhance_batch_size", 2)
        generator = make_generator(delay=0.01)
        asyncio.run(_collect(enhance_stream([_paragraph(i) for i in range(5)], generator)))
        assert generator.max_in_flight == 2

    @pytest.mark.parametrize("paragraphs", [[], "not a list", None])
    def test_rejects_bad_input_eagerly(self, make_generator, paragraphs) -> None:
        generator = make_generator()
        with pytest.raises(ValueError):
            enhance_stream(paragraphs, generator)
        assert generator.prompts == []
