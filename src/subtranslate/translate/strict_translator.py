from __future__ import annotations

import logging
import time
from typing import Dict, List, Sequence

from subtranslate.errors import (
    ServiceNoopError,
    ServiceResponseError,
    TranslationFailedError,
    TransportError,
)

from .backend import DEFAULT_TARGET_LANGUAGE, TranslationBackend
from .protocol import build_units, parse_response, validate_response
from .translator import TranslationEngine

logger = logging.getLogger(__name__)


class StrictRetryTranslator(TranslationEngine):
    """
    严格重试策略。

    - 响应必须通过完整校验，且不能整批原样回显；
    - 响应不合规时固定等待 retry_delay 后重试；
    - 调用本身失败（TransportError）时按 retry_delay * 第几次尝试 线性退避；
    - 用尽 max_attempts 后抛出 TranslationFailedError，整条流水线随之中止。
    """

    def __init__(
        self,
        backend: TranslationBackend,
        target_language: str = DEFAULT_TARGET_LANGUAGE,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        super().__init__(backend, target_language=target_language)
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    @staticmethod
    def _check_not_echoed(texts: Sequence[str], translations: Dict[int, str]) -> None:
        if all(translations[i].strip() == text.strip() for i, text in enumerate(texts)):
            raise ServiceNoopError(
                "Translation service returned every text unchanged; nothing was translated."
            )

    def _attempt(self, texts: Sequence[str]) -> List[str]:
        units = build_units(texts)
        raw = self._request(units)
        translations = validate_response(parse_response(raw), len(units))
        self._check_not_echoed(texts, translations)
        return [translations[unit.id] for unit in units]

    def translate_texts(self, texts: Sequence[str]) -> List[str]:
        if not texts:
            return []

        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._attempt(texts)
            except ServiceResponseError as exc:
                last_error = exc
                delay = self.retry_delay
            except TransportError as exc:
                last_error = exc
                delay = self.retry_delay * attempt

            if attempt < self.max_attempts:
                logger.warning(
                    "Translation attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt,
                    self.max_attempts,
                    last_error,
                    delay,
                )
                time.sleep(delay)

        raise TranslationFailedError(
            f"Translation failed after {self.max_attempts} attempt(s): {last_error}",
            last_error=last_error,
        ) from last_error
