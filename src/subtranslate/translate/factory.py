from __future__ import annotations

from typing import TYPE_CHECKING

from .backend import TranslationBackend
from .best_effort_translator import BestEffortTranslator
from .gemini_backend import DEFAULT_GEMINI_MODEL, DEFAULT_GEMINI_URL, GeminiBackend
from .openai_backend import DEFAULT_OPENAI_MODEL, DEFAULT_OPENAI_URL, OpenAIChatBackend
from .strict_translator import StrictRetryTranslator
from .translator import TranslationEngine

if TYPE_CHECKING:
    from subtranslate.config import SubtranslateConfig


def get_backend(config: "SubtranslateConfig") -> TranslationBackend:
    """
    根据名称返回对应的翻译服务后端。

    支持：
      - "openai" : OpenAIChatBackend（任意 Chat Completions 兼容接口）
      - "gemini" : GeminiBackend
    """
    key = config.backend.lower()
    if key == "openai":
        return OpenAIChatBackend(
            url=config.api_url or DEFAULT_OPENAI_URL,
            model=config.model or DEFAULT_OPENAI_MODEL,
            api_key=config.api_key,
            timeout=config.timeout,
            proxies=config.proxies,
        )
    if key == "gemini":
        return GeminiBackend(
            api_key=config.api_key,
            model=config.model or DEFAULT_GEMINI_MODEL,
            base_url=config.api_url or DEFAULT_GEMINI_URL,
            timeout=config.timeout,
            proxies=config.proxies,
        )
    raise ValueError(f"Unknown translation backend: {config.backend}")


def get_translation_engine(
    config: "SubtranslateConfig",
    backend: TranslationBackend | None = None,
) -> TranslationEngine:
    """
    根据 translation_policy 返回对应的翻译引擎实例。

    支持：
      - "best_effort" : BestEffortTranslator（默认）
      - "strict"      : StrictRetryTranslator
    """
    if backend is None:
        backend = get_backend(config)
    key = config.translation_policy.lower().replace("-", "_")
    if key == "best_effort":
        return BestEffortTranslator(backend, target_language=config.target_language)
    if key == "strict":
        return StrictRetryTranslator(
            backend,
            target_language=config.target_language,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
        )
    raise ValueError(f"Unknown translation policy: {config.translation_policy}")
