from __future__ import annotations

from typing import Dict, Sequence

from subtranslate.errors import TransportError

from .backend import TranslationBackend
from .protocol import TranslationUnit, units_to_json

DEFAULT_OPENAI_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


class OpenAIChatBackend(TranslationBackend):
    """
    使用 OpenAI Chat Completions 兼容接口的翻译服务。

    同样适用于各类兼容网关（本地 Ollama / vLLM / DeepSeek 等），
    只需替换 url 与 model。
    """

    def __init__(
        self,
        url: str = DEFAULT_OPENAI_URL,
        model: str = DEFAULT_OPENAI_MODEL,
        api_key: str | None = None,
        timeout: float = 60.0,
        proxies: Dict[str, str] | None = None,
        temperature: float = 0.2,
    ) -> None:
        super().__init__(timeout=timeout, proxies=proxies)
        self.url = url
        self.model = model
        self.api_key = api_key
        self.temperature = temperature

    def complete(self, system_prompt: str, units: Sequence[TranslationUnit]) -> str:
        headers = {
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": units_to_json(units)},
            ],
            "temperature": self.temperature,
        }
        data = self._post_json(self.url, headers, body)

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise TransportError(
                f"Translation service response missing 'choices' list, got: {list(data.keys())}"
            )

        first = choices[0]
        if not isinstance(first, dict):
            raise TransportError(
                f"Translation service returned a malformed choice: {first!r}"
            )
        content: str | None = None

        # OpenAI Chat: choices[0].message.content
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")

        # 某些实现直接在 text 字段返回
        if content is None and "text" in first:
            content = first.get("text")

        if not isinstance(content, str):
            raise TransportError(
                f"Translation service response missing 'content'/'text' in first choice: {first}"
            )
        return content
