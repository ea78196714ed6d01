from __future__ import annotations

import logging
from typing import List, Sequence

from subtranslate.errors import ServiceFormatError

from .protocol import build_units, collect_translations, parse_response
from .translator import TranslationEngine

logger = logging.getLogger(__name__)


class BestEffortTranslator(TranslationEngine):
    """
    尽力而为策略（默认）。

    只请求一次，不重试：
    - 响应不是 JSON 数组时，整批保留原文并记录警告；
    - 部分缺失时，仅缺失位置回退为原文，并记录缺失条数；
    - 原样回显视为合法结果；
    - 只有调用本身失败（TransportError）才向上抛出。
    """

    def translate_texts(self, texts: Sequence[str]) -> List[str]:
        if not texts:
            return []

        units = build_units(texts)
        raw = self._request(units)

        try:
            payload = parse_response(raw)
        except ServiceFormatError as exc:
            logger.warning("%s Falling back to original text for this chunk.", exc)
            return list(texts)

        if not isinstance(payload, list):
            logger.warning(
                "Translation service response is not an array (%s). "
                "Falling back to original text for this chunk.",
                type(payload).__name__,
            )
            return list(texts)

        translations = collect_translations(payload, len(units))
        missing_count = len(units) - len(translations)
        if missing_count > 0:
            logger.warning(
                "%d subtitle line(s) were not translated in this chunk due to an "
                "incomplete service response.",
                missing_count,
            )
        return [translations.get(unit.id, unit.text) for unit in units]
