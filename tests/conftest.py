"""Shared test fixtures for subtranslate tests."""

import json
import os
from typing import Callable, List, Sequence, Union
from unittest.mock import patch

import pytest

from subtranslate.translate.backend import TranslationBackend
from subtranslate.translate.protocol import TranslationUnit

SAMPLE_SRT = """1
00:00:01,000 --> 00:00:02,500
Hello.

2
00:00:03,000 --> 00:00:04,000
Bye.

3
00:00:05,000 --> 00:00:07,000
How are you?
I'm fine.
"""

ScriptedResponse = Union[str, Exception, Callable[[Sequence[TranslationUnit]], str]]


class FakeBackend(TranslationBackend):
    """Backend that replays scripted responses and records every request."""

    def __init__(self, responses: List[ScriptedResponse]):
        super().__init__()
        self.responses = list(responses)
        self.calls: List[List[TranslationUnit]] = []
        self.system_prompts: List[str] = []

    def complete(self, system_prompt: str, units: Sequence[TranslationUnit]) -> str:
        self.calls.append(list(units))
        self.system_prompts.append(system_prompt)
        if not self.responses:
            raise AssertionError("FakeBackend ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(units)
        return response


def _uppercase_translation(units: Sequence[TranslationUnit]) -> str:
    """Fake 'translation' that uppercases every text, in reversed order."""
    return json.dumps([{"id": u.id, "text": u.text.upper()} for u in reversed(units)], ensure_ascii=False)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate tests from SUBTRANSLATE_* settings on the host."""
    for key in list(os.environ):
        if key.startswith("SUBTRANSLATE_") or key == "GEMINI_API_KEY":
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def no_sleep():
    """Patch out retry waits and expose the mock to assert on delays."""
    with patch("subtranslate.translate.strict_translator.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def fake_backend_factory() -> Callable[[List[ScriptedResponse]], FakeBackend]:
    return FakeBackend


@pytest.fixture
def uppercase_translation() -> Callable[[Sequence[TranslationUnit]], str]:
    return _uppercase_translation
