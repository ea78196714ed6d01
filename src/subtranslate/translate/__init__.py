from __future__ import annotations

from .protocol import TranslationUnit, build_units
from .backend import TranslationBackend
from .openai_backend import OpenAIChatBackend
from .gemini_backend import GeminiBackend
from .translator import TranslationEngine
from .strict_translator import StrictRetryTranslator
from .best_effort_translator import BestEffortTranslator

__all__ = [
    "TranslationUnit",
    "build_units",
    "TranslationBackend",
    "OpenAIChatBackend",
    "GeminiBackend",
    "TranslationEngine",
    "StrictRetryTranslator",
    "BestEffortTranslator",
]
