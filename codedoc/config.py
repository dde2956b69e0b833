"""
Settings loaded from the environment.

A ``.env`` file in the working directory is read first (python-dotenv); the
CLI writes flag overrides into ``os.environ`` before calling
``load_settings`` so every value has a single source.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from codedoc.cache import DEFAULT_CACHE_FILENAME
from codedoc.path_policy import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, normalize_extensions
from codedoc.prompts import DEFAULT_TEMPLATE

DEFAULT_SOURCE_DIRS = ("app", "config", "routes", "database")
DEFAULT_OUTPUT_DIR = "documentation"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 10000
DEFAULT_RATE_LIMIT_DELAY = 0.5


class ConfigError(ValueError):
    """Configuration is missing or inconsistent."""


def _split(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not value:
        return tuple(default)
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{raw}'") from None


def _float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from None


@dataclass(frozen=True)
class Settings:
    source_dirs: Tuple[str, ...] = DEFAULT_SOURCE_DIRS
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    extensions: Tuple[str, ...] = tuple(DEFAULT_EXTENSIONS)
    skip_dirs: Tuple[str, ...] = tuple(DEFAULT_SKIP_DIRS)
    api_provider: str = "openai"
    prompt_template: Path = DEFAULT_TEMPLATE
    use_cache: bool = True
    cache_path: Optional[Path] = None
    rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY

    openai_api_key: str = field(default="", repr=False)
    claude_api_key: str = field(default="", repr=False)
    gemini_api_key: str = field(default="", repr=False)
    azure_api_key: str = field(default="", repr=False)
    azure_endpoint: str = ""
    azure_deployment: str = ""
    azure_api_version: str = "2023-05-15"
    ollama_host: str = "localhost"
    ollama_port: int = 11434

    jira_host: str = ""
    jira_email: str = ""
    jira_api_token: str = field(default="", repr=False)
    jira_project_key: str = ""
    jira_issue_type: str = "Task"

    confluence_host: str = ""
    confluence_email: str = ""
    confluence_api_token: str = field(default="", repr=False)
    confluence_space_key: str = ""
    confluence_parent_page_id: str = ""

    @property
    def resolved_cache_path(self) -> Path:
        """Explicit cache path, or ``<output>/.codedoc_cache.json``."""
        if self.cache_path:
            return Path(self.cache_path)
        return Path(self.output_dir) / DEFAULT_CACHE_FILENAME


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings from the process environment and a ``.env`` file.

    The ``.env`` file is ``env_file`` when given, else the nearest one found
    from the working directory upwards.

    Existing environment variables win over values in the ``.env`` file.

    Raises:
        ConfigError: when a numeric variable cannot be parsed.
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    cache_path = os.getenv("CODEDOC_CACHE_PATH", "")
    template = os.getenv("CODEDOC_PROMPT_TEMPLATE", "")

    return Settings(
        source_dirs=_split(os.getenv("CODEDOC_SOURCE_DIRS"), DEFAULT_SOURCE_DIRS),
        output_dir=Path(os.getenv("CODEDOC_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        model=os.getenv("CODEDOC_MODEL") or DEFAULT_MODEL,
        max_tokens=_int("CODEDOC_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        extensions=tuple(normalize_extensions(_split(os.getenv("CODEDOC_EXTENSIONS"), DEFAULT_EXTENSIONS))),
        skip_dirs=_split(os.getenv("CODEDOC_SKIP_DIRS"), DEFAULT_SKIP_DIRS),
        api_provider=(os.getenv("CODEDOC_API_PROVIDER") or "openai").strip().lower(),
        prompt_template=Path(template) if template else DEFAULT_TEMPLATE,
        use_cache=_flag(os.getenv("CODEDOC_USE_CACHE"), True),
        cache_path=Path(cache_path) if cache_path else None,
        rate_limit_delay=_float("CODEDOC_RATE_LIMIT_DELAY", DEFAULT_RATE_LIMIT_DELAY),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        claude_api_key=os.getenv("CLAUDE_API_KEY", ""),
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        azure_api_key=os.getenv("AZURE_OPENAI_API_KEY", ""),
        azure_endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", ""),
        azure_deployment=os.getenv("AZURE_OPENAI_DEPLOYMENT", ""),
        azure_api_version=os.getenv("AZURE_OPENAI_API_VERSION") or "2023-05-15",
        ollama_host=os.getenv("OLLAMA_HOST") or "localhost",
        ollama_port=_int("OLLAMA_PORT", 11434),
        jira_host=os.getenv("JIRA_HOST", ""),
        jira_email=os.getenv("JIRA_EMAIL", ""),
        jira_api_token=os.getenv("JIRA_API_TOKEN", ""),
        jira_project_key=os.getenv("JIRA_PROJECT_KEY", ""),
        jira_issue_type=os.getenv("JIRA_ISSUE_TYPE") or "Task",
        confluence_host=os.getenv("CONFLUENCE_HOST", ""),
        confluence_email=os.getenv("CONFLUENCE_EMAIL", ""),
        confluence_api_token=os.getenv("CONFLUENCE_API_TOKEN", ""),
        confluence_space_key=os.getenv("CONFLUENCE_SPACE_KEY", ""),
        confluence_parent_page_id=os.getenv("CONFLUENCE_PARENT_PAGE_ID", ""),
    )
