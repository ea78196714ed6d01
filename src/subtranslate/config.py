from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Dict, Optional

from .chunking import DEFAULT_CHAR_BUDGET
from .translate.backend import DEFAULT_TARGET_LANGUAGE


def _env_int(name: str, default: int) -> int:
    env_value = os.getenv(name, "").strip()
    if not env_value:
        return default
    try:
        return int(env_value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    env_value = os.getenv(name, "").strip()
    if not env_value:
        return default
    try:
        return float(env_value)
    except ValueError:
        return default


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    env_value = os.getenv(name, "").strip()
    return env_value or default


def derive_output_path(input_path: str | Path, lang_suffix: str = "pt") -> Path:
    """
    根据输入文件名推导译文文件名：

      - name.srt  -> name.pt.srt（扩展名大小写不敏感）
      - 其它扩展名或无扩展名 -> 在完整文件名后追加 .pt.srt
    """
    path = Path(input_path)
    if path.suffix.lower() == ".srt" and path.stem:
        return path.with_name(f"{path.stem}.{lang_suffix}{path.suffix}")
    return path.with_name(f"{path.name}.{lang_suffix}.srt")


@dataclass
class SubtranslateConfig:
    """
    核心配置对象。

    优先级：显式参数 > 环境变量（SUBTRANSLATE_*，可来自 .env）> 内置默认值。
    """

    backend: str = "openai"
    translation_policy: str = "best_effort"
    char_budget: int = DEFAULT_CHAR_BUDGET
    max_attempts: int = 3
    retry_delay: float = 1.0
    target_language: str = DEFAULT_TARGET_LANGUAGE
    lang_suffix: str = "pt"
    api_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 60.0
    http_proxy: Optional[str] = None
    https_proxy: Optional[str] = None

    @property
    def proxies(self) -> Dict[str, str] | None:
        proxies: dict[str, str] = {}
        if self.http_proxy:
            proxies["http"] = self.http_proxy
        if self.https_proxy:
            proxies["https"] = self.https_proxy
        return proxies or None

    @classmethod
    def from_env(
        cls,
        backend: Optional[str] = None,
        translation_policy: Optional[str] = None,
        char_budget: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        target_language: Optional[str] = None,
        lang_suffix: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "SubtranslateConfig":
        backend_value = (backend or _env_str("SUBTRANSLATE_BACKEND", "openai")).lower()
        policy_value = (
            translation_policy or _env_str("SUBTRANSLATE_POLICY", "best_effort")
        ).lower().replace("-", "_")

        # gemini 场景下兼容常见的 GEMINI_API_KEY
        if api_key is None:
            api_key = _env_str("SUBTRANSLATE_LLM_API_KEY")
            if api_key is None and backend_value == "gemini":
                api_key = _env_str("GEMINI_API_KEY")

        return cls(
            backend=backend_value,
            translation_policy=policy_value,
            char_budget=(
                char_budget
                if char_budget is not None
                else _env_int("SUBTRANSLATE_CHAR_BUDGET", DEFAULT_CHAR_BUDGET)
            ),
            max_attempts=(
                max_attempts
                if max_attempts is not None
                else _env_int("SUBTRANSLATE_MAX_ATTEMPTS", 3)
            ),
            retry_delay=(
                retry_delay
                if retry_delay is not None
                else _env_float("SUBTRANSLATE_RETRY_DELAY", 1.0)
            ),
            target_language=target_language
            or _env_str("SUBTRANSLATE_TARGET_LANGUAGE", DEFAULT_TARGET_LANGUAGE),
            lang_suffix=lang_suffix or _env_str("SUBTRANSLATE_LANG_SUFFIX", "pt"),
            api_url=api_url or _env_str("SUBTRANSLATE_LLM_URL"),
            model=model or _env_str("SUBTRANSLATE_LLM_MODEL"),
            api_key=api_key,
            timeout=timeout if timeout is not None else _env_float("SUBTRANSLATE_LLM_TIMEOUT", 60.0),
            http_proxy=_env_str("SUBTRANSLATE_HTTP_PROXY"),
            https_proxy=_env_str("SUBTRANSLATE_HTTPS_PROXY"),
        )
