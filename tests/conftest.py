"""Shared fixtures: a scripted stand-in for the generation service."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Union

import pytest

from backend.llm import TextGenerator

Reply = Union[str, BaseException]


class ScriptedGenerator(TextGenerator):
    """Answers each prompt via *reply*, recording every prompt it receives.

    *reply* maps a prompt to either a response string or an exception to
    raise.  ``in_flight``/``max_in_flight`` track concurrent calls.
    """

    def __init__(self, reply: Callable[[str], Reply], delay: float = 0.0) -> None:
        self._reply = reply
        self._delay = delay
        self.prompts: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
            reply = self._reply(prompt)
        finally:
            self.in_flight -= 1
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture()
def make_generator() -> Callable[..., ScriptedGenerator]:
    def _make(reply: Optional[Callable[[str], Reply]] = None, delay: float = 0.0) -> ScriptedGenerator:
        return ScriptedGenerator(reply or (lambda prompt: '{"insight": null}'), delay=delay)

    return _make
