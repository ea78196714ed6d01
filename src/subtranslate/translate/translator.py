from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from .backend import DEFAULT_TARGET_LANGUAGE, TranslationBackend, build_system_prompt
from .protocol import TranslationUnit


class TranslationEngine(ABC):
    """
    翻译引擎抽象接口。

    不同的失败处理策略（严格重试 / 尽力而为）都实现该接口，
    Pipeline 只依赖 translate_texts 这一契约：
    返回值与输入等长、同序，第 i 项是第 i 条输入的译文（或原文回退）。
    """

    def __init__(
        self,
        backend: TranslationBackend,
        target_language: str = DEFAULT_TARGET_LANGUAGE,
    ) -> None:
        self.backend = backend
        self.target_language = target_language
        self.system_prompt = build_system_prompt(target_language)

    def _request(self, units: Sequence[TranslationUnit]) -> str:
        return self.backend.complete(self.system_prompt, units)

    @abstractmethod
    def translate_texts(self, texts: Sequence[str]) -> List[str]:
        """
        翻译一个批次的文本，返回与 texts 一一对应的译文列表。
        """
