"""Unit tests for configuration, output naming and engine factories."""

from pathlib import Path

import pytest

from subtranslate.config import SubtranslateConfig, derive_output_path
from subtranslate.translate.best_effort_translator import BestEffortTranslator
from subtranslate.translate.factory import get_backend, get_translation_engine
from subtranslate.translate.gemini_backend import GeminiBackend
from subtranslate.translate.openai_backend import DEFAULT_OPENAI_URL, OpenAIChatBackend
from subtranslate.translate.strict_translator import StrictRetryTranslator


class TestDeriveOutputPath:
    """name.srt -> name.pt.srt, anything else gets .pt.srt appended."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("movie.srt", "movie.pt.srt"),
            ("movie.en.srt", "movie.en.pt.srt"),
            ("MOVIE.SRT", "MOVIE.pt.SRT"),
            ("movie.txt", "movie.txt.pt.srt"),
            ("movie", "movie.pt.srt"),
        ],
    )
    def test_names(self, name, expected):
        assert derive_output_path(name).name == expected

    def test_keeps_directory(self, tmp_path):
        assert derive_output_path(tmp_path / "a.srt") == tmp_path / "a.pt.srt"

    def test_custom_suffix(self):
        assert derive_output_path(Path("a.srt"), "es") == Path("a.es.srt")


class TestSubtranslateConfig:
    """Tests for SubtranslateConfig.from_env()."""

    def test_defaults(self):
        config = SubtranslateConfig.from_env()
        assert config.backend == "openai"
        assert config.translation_policy == "best_effort"
        assert config.char_budget == 3750
        assert config.max_attempts == 3
        assert config.retry_delay == 1.0
        assert config.target_language == "European Portuguese"
        assert config.lang_suffix == "pt"
        assert config.proxies is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SUBTRANSLATE_POLICY", "strict")
        monkeypatch.setenv("SUBTRANSLATE_CHAR_BUDGET", "1000")
        monkeypatch.setenv("SUBTRANSLATE_RETRY_DELAY", "0.25")
        monkeypatch.setenv("SUBTRANSLATE_LLM_MODEL", "local-model")
        monkeypatch.setenv("SUBTRANSLATE_HTTPS_PROXY", "http://proxy:3128")
        config = SubtranslateConfig.from_env()
        assert config.translation_policy == "strict"
        assert config.char_budget == 1000
        assert config.retry_delay == 0.25
        assert config.model == "local-model"
        assert config.proxies == {"https": "http://proxy:3128"}

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setenv("SUBTRANSLATE_CHAR_BUDGET", "1000")
        assert SubtranslateConfig.from_env(char_budget=200).char_budget == 200

    def test_invalid_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("SUBTRANSLATE_CHAR_BUDGET", "lots")
        monkeypatch.setenv("SUBTRANSLATE_MAX_ATTEMPTS", "")
        config = SubtranslateConfig.from_env()
        assert config.char_budget == 3750
        assert config.max_attempts == 3

    def test_policy_name_is_normalized(self):
        assert SubtranslateConfig.from_env(translation_policy="Best-Effort").translation_policy == "best_effort"

    def test_gemini_key_fallback(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        assert SubtranslateConfig.from_env(backend="gemini").api_key == "g-key"
        assert SubtranslateConfig.from_env(backend="openai").api_key is None


class TestFactories:
    """Tests for get_backend() / get_translation_engine()."""

    def test_openai_backend_defaults(self):
        backend = get_backend(SubtranslateConfig())
        assert isinstance(backend, OpenAIChatBackend)
        assert backend.url == DEFAULT_OPENAI_URL

    def test_gemini_backend(self):
        backend = get_backend(SubtranslateConfig(backend="gemini", api_key="k", model="g"))
        assert isinstance(backend, GeminiBackend)
        assert backend.model == "g"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_backend(SubtranslateConfig(backend="carrier-pigeon"))

    def test_default_policy_is_best_effort(self, fake_backend_factory):
        engine = get_translation_engine(SubtranslateConfig(), backend=fake_backend_factory([]))
        assert isinstance(engine, BestEffortTranslator)

    def test_strict_policy_settings(self, fake_backend_factory):
        config = SubtranslateConfig(translation_policy="strict", max_attempts=5, retry_delay=0.1)
        engine = get_translation_engine(config, backend=fake_backend_factory([]))
        assert isinstance(engine, StrictRetryTranslator)
        assert engine.max_attempts == 5
        assert engine.retry_delay == 0.1

    def test_unknown_policy(self, fake_backend_factory):
        with pytest.raises(ValueError):
            get_translation_engine(
                SubtranslateConfig(translation_policy="yolo"), backend=fake_backend_factory([])
            )
