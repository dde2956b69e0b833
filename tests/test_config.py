"""Tests for settings loaded from the environment and .env files."""

from pathlib import Path

import pytest

from codedoc.config import ConfigError, Settings, load_settings
from codedoc.prompts import DEFAULT_TEMPLATE


@pytest.fixture
def forget_dotenv_values(monkeypatch):
    """load_dotenv writes straight into os.environ; undo that after the test."""
    for name in ("CODEDOC_MODEL", "OPENAI_API_KEY"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings()

        assert settings.source_dirs == ("app", "config", "routes", "database")
        assert settings.output_dir == Path("documentation")
        assert settings.model == "gpt-4o-mini"
        assert settings.max_tokens == 10000
        assert settings.extensions == ("php", "yaml", "yml")
        assert settings.api_provider == "openai"
        assert settings.prompt_template == DEFAULT_TEMPLATE
        assert settings.use_cache is True
        assert settings.rate_limit_delay == 0.5
        assert settings.ollama_port == 11434
        assert settings.resolved_cache_path == Path("documentation") / ".codedoc_cache.json"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CODEDOC_SOURCE_DIRS", "src, lib")
        monkeypatch.setenv("CODEDOC_EXTENSIONS", ".PHP,Twig")
        monkeypatch.setenv("CODEDOC_USE_CACHE", "false")
        monkeypatch.setenv("CODEDOC_CACHE_PATH", "/var/cache/codedoc.json")
        monkeypatch.setenv("CODEDOC_API_PROVIDER", "Ollama")
        monkeypatch.setenv("OLLAMA_PORT", "11500")

        settings = load_settings()

        assert settings.source_dirs == ("src", "lib")
        assert settings.extensions == ("php", "twig")
        assert settings.use_cache is False
        assert settings.resolved_cache_path == Path("/var/cache/codedoc.json")
        assert settings.api_provider == "ollama"
        assert settings.ollama_port == 11500

    def test_dotenv_file_read(self, tmp_path, forget_dotenv_values):
        (tmp_path / ".env").write_text("CODEDOC_MODEL=llama3\nOPENAI_API_KEY=sk-from-file\n")

        settings = load_settings()

        assert settings.model == "llama3"
        assert settings.openai_api_key == "sk-from-file"

    def test_process_environment_wins_over_dotenv(self, tmp_path, monkeypatch, forget_dotenv_values):
        (tmp_path / ".env").write_text("CODEDOC_MODEL=llama3\n")
        monkeypatch.setenv("CODEDOC_MODEL", "gpt-4o")

        assert load_settings().model == "gpt-4o"

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("CODEDOC_MAX_TOKENS", "lots")

        with pytest.raises(ConfigError, match="CODEDOC_MAX_TOKENS"):
            load_settings()

    def test_secrets_hidden_from_repr(self):
        assert "sk-secret" not in repr(Settings(openai_api_key="sk-secret"))
