from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Sequence

import requests

from subtranslate.errors import TransportError

from .protocol import TranslationUnit

logger = logging.getLogger(__name__)

DEFAULT_TARGET_LANGUAGE = "European Portuguese"


def _load_prompt(name: str) -> str:
    """
    从包内 prompts/ 目录加载 prompt 模板。

    __file__ 示例路径：
      <site-packages>/subtranslate/translate/backend.py
    parents[1] -> subtranslate
    """
    prompt_path = Path(__file__).resolve().parents[1] / "prompts" / name
    if not prompt_path.is_file():
        raise FileNotFoundError(f"Prompt file not found: {prompt_path}")
    return prompt_path.read_text(encoding="utf-8")


def build_system_prompt(target_language: str = DEFAULT_TARGET_LANGUAGE) -> str:
    # 模板中包含 JSON 示例的花括号，不能用 str.format
    template = _load_prompt("subtitle_translation.md")
    return template.replace("{target_language}", target_language).strip()


def _error_detail(response: requests.Response) -> str | None:
    """
    从错误响应体中提取服务端给出的说明。

    兼容 {"error": {"message": "..."}}（Gemini / OpenAI）以及 {"error": "..."} 两种形式。
    """
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str) and error.strip():
        return error.strip()
    return None


class TranslationBackend(ABC):
    """
    外部翻译服务的抽象接口。

    只负责"把单元列表发出去，拿回模型输出的原始文本"，
    不做任何语义校验；校验与重试由 TranslationEngine 负责。
    调用层面的失败（网络、鉴权、HTTP 状态码）一律包装为 TransportError。
    """

    def __init__(
        self,
        timeout: float = 60.0,
        proxies: Dict[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.proxies = proxies or None

    @abstractmethod
    def complete(self, system_prompt: str, units: Sequence[TranslationUnit]) -> str:
        """
        提交一批翻译单元，返回服务输出的原始文本内容。
        """

    def _post_json(
        self,
        url: str,
        headers: Dict[str, str],
        body: Dict[str, Any],
    ) -> Dict[str, Any]:
        logger.debug("POST %s (%d bytes)", url, len(json.dumps(body)))
        try:
            response = requests.post(
                url,
                headers=headers,
                data=json.dumps(body),
                timeout=self.timeout,
                proxies=self.proxies,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Translation service request failed: {exc}") from exc

        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            message = f"Translation service request failed: {exc}"
            detail = _error_detail(response)
            if detail:
                message = f"{message} ({detail})"
            raise TransportError(message) from exc

        try:
            data = response.json()
        except ValueError as json_err:
            snippet = response.text[:500]
            raise TransportError(
                f"Translation service envelope is not valid JSON, first 500 chars: {snippet}"
            ) from json_err
        if not isinstance(data, dict):
            raise TransportError(
                f"Translation service envelope is not a JSON object: {type(data).__name__}"
            )
        return data
