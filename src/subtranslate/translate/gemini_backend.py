from __future__ import annotations

from typing import Any, Dict, Sequence

from subtranslate.errors import TransportError

from .backend import TranslationBackend
from .protocol import TranslationUnit, units_to_json

DEFAULT_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

# 约束模型输出为 [{id: number, text: string}, ...]
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "NUMBER"},
            "text": {"type": "STRING"},
        },
        "required": ["id", "text"],
    },
}


class GeminiBackend(TranslationBackend):
    """
    通过 Gemini REST 接口（models/{model}:generateContent）进行翻译。

    开启 JSON 模式并附带 responseSchema，尽量让模型只返回对象数组；
    即便如此，返回内容仍需经过 TranslationEngine 的完整校验。
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_URL,
        timeout: float = 60.0,
        proxies: Dict[str, str] | None = None,
        temperature: float = 0.2,
    ) -> None:
        super().__init__(timeout=timeout, proxies=proxies)
        if not api_key:
            raise RuntimeError(
                "GeminiBackend requires SUBTRANSLATE_LLM_API_KEY or GEMINI_API_KEY to be set."
            )
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature

    def _endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def complete(self, system_prompt: str, units: Sequence[TranslationUnit]) -> str:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        body = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [
                {"role": "user", "parts": [{"text": units_to_json(units)}]},
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        data = self._post_json(self._endpoint(), headers, body)

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise TransportError(
                f"Gemini response missing 'candidates' field, got: {list(data.keys())}"
            )
        first = candidates[0]
        if not isinstance(first, dict):
            raise TransportError(f"Gemini returned a malformed candidate: {first!r}")
        content = first.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts:
            reason = first.get("finishReason", "unknown")
            raise TransportError(f"Gemini response has no content parts (finishReason={reason}).")
        return "".join(str(part.get("text", "")) for part in parts if isinstance(part, dict))
