"""Text-generation backends.

Deep module: callers hand over a file path, its content and optional
context, and get a ``ProduceResult`` back. Prompt rendering, request
shapes per provider, retries and response parsing are handled here.

Each provider is a frozen dataclass that validates its own required fields
on construction, so a misconfigured backend fails at startup instead of
on the first file.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import requests

from codedoc.context import FileContext
from codedoc.prompts import SYSTEM_PROMPT, PromptBuilder

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    OPENAI = "openai"
    AZURE = "azure"
    CLAUDE = "claude"
    GEMINI = "gemini"
    OLLAMA = "ollama"

    @classmethod
    def parse(cls, value: str) -> "Provider":
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown API provider '{value}'. Supported: {allowed}") from None


class UnexpectedResponse(Exception):
    """The backend answered, but not in the documented shape."""


def _require(**fields: str) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValueError(f"Missing required backend configuration: {', '.join(missing)}")


def _chat_messages(prompt: str) -> list:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def _choices_content(data: dict) -> str:
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise UnexpectedResponse("Unexpected API response format") from None


# ---------------------------------------------------------------------------
# Provider variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OpenAIBackend:
    api_key: str
    model: str
    max_output_tokens: int = 1500
    base_url: str = "https://api.openai.com/v1"

    provider = Provider.OPENAI

    def __post_init__(self):
        _require(api_key=self.api_key, model=self.model)

    def request(self, prompt: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {
            "model": self.model,
            "messages": _chat_messages(prompt),
            "max_tokens": self.max_output_tokens,
        }
        return url, headers, payload

    def parse(self, data: dict) -> str:
        return _choices_content(data)


@dataclass(frozen=True)
class AzureOpenAIBackend:
    api_key: str
    endpoint: str
    deployment: str
    api_version: str = "2023-05-15"
    max_output_tokens: int = 1500

    provider = Provider.AZURE

    def __post_init__(self):
        _require(api_key=self.api_key, endpoint=self.endpoint, deployment=self.deployment)

    def request(self, prompt: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = (
            f"{self.endpoint.rstrip('/')}/openai/deployments/{self.deployment}"
            f"/chat/completions?api-version={self.api_version}"
        )
        headers = {"Content-Type": "application/json", "api-key": self.api_key}
        payload = {
            "messages": _chat_messages(prompt),
            "max_tokens": self.max_output_tokens,
        }
        return url, headers, payload

    def parse(self, data: dict) -> str:
        return _choices_content(data)


@dataclass(frozen=True)
class ClaudeBackend:
    api_key: str
    model: str
    max_output_tokens: int = 4096
    base_url: str = "https://api.anthropic.com/v1"
    anthropic_version: str = "2023-06-01"

    provider = Provider.CLAUDE

    def __post_init__(self):
        _require(api_key=self.api_key, model=self.model)

    def request(self, prompt: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = f"{self.base_url.rstrip('/')}/messages"
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
        }
        payload = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_output_tokens,
        }
        return url, headers, payload

    def parse(self, data: dict) -> str:
        try:
            blocks = data["content"]
            text = "".join(b.get("text", "") for b in blocks if b.get("type", "text") == "text")
        except (KeyError, TypeError, AttributeError):
            raise UnexpectedResponse("Unexpected Claude API response format") from None
        if not text:
            raise UnexpectedResponse("Claude API response contained no text")
        return text


@dataclass(frozen=True)
class GeminiBackend:
    api_key: str
    model: str
    max_output_tokens: int = 10000
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    provider = Provider.GEMINI

    def __post_init__(self):
        _require(api_key=self.api_key, model=self.model)

    @property
    def resolved_model(self) -> str:
        if self.model in ("gemini", "gemini-pro"):
            return "gemini-1.5-pro"
        return self.model

    def request(self, prompt: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = (
            f"{self.base_url.rstrip('/')}/models/{self.resolved_model}"
            f":generateContent?key={self.api_key}"
        )
        headers = {"Content-Type": "application/json"}
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": self.max_output_tokens,
                "temperature": 0.2,
                "topP": 0.9,
            },
        }
        return url, headers, payload

    def parse(self, data: dict) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise UnexpectedResponse(f"Unexpected Gemini API response format: {data}") from None


@dataclass(frozen=True)
class OllamaBackend:
    model: str
    host: str = "localhost"
    port: int = 11434
    max_output_tokens: int = 10000

    provider = Provider.OLLAMA

    def __post_init__(self):
        _require(model=self.model, host=self.host)

    def request(self, prompt: str) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = f"http://{self.host}:{self.port}/api/chat"
        headers = {"Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": _chat_messages(prompt),
            "stream": False,
            "options": {"num_predict": self.max_output_tokens},
        }
        return url, headers, payload

    def parse(self, data: dict) -> str:
        try:
            return data["message"]["content"]
        except (KeyError, TypeError):
            raise UnexpectedResponse("Unexpected API response format") from None


def build_backend(settings):
    """Build the backend variant selected by ``settings.api_provider``."""
    provider = Provider.parse(settings.api_provider)

    if provider is Provider.OPENAI:
        return OpenAIBackend(api_key=settings.openai_api_key, model=settings.model)
    if provider is Provider.AZURE:
        return AzureOpenAIBackend(
            api_key=settings.azure_api_key,
            endpoint=settings.azure_endpoint,
            deployment=settings.azure_deployment,
            api_version=settings.azure_api_version,
        )
    if provider is Provider.CLAUDE:
        return ClaudeBackend(api_key=settings.claude_api_key, model=settings.model)
    if provider is Provider.GEMINI:
        return GeminiBackend(
            api_key=settings.gemini_api_key,
            model=settings.model,
            max_output_tokens=settings.max_tokens,
        )
    return OllamaBackend(
        model=settings.model,
        host=settings.ollama_host,
        port=settings.ollama_port,
        max_output_tokens=settings.max_tokens,
    )


# ---------------------------------------------------------------------------
# Producer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProduceResult:
    """Generated text, or the reason there is none."""

    text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ContentProducer:
    """Turn one source file into documentation text via a backend.

    Args:
        backend: One of the provider dataclasses above.
        prompt_builder: Renders the prompt template.
        max_retries: Attempts per file for transport failures.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        backend,
        prompt_builder: Optional[PromptBuilder] = None,
        max_retries: int = 3,
        timeout: int = 120,
    ):
        self.backend = backend
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.max_retries = max(1, max_retries)
        self.timeout = timeout

    def produce(self, file_path, content: str, context: Optional[FileContext] = None) -> ProduceResult:
        prompt = self.prompt_builder.build(file_path, content, context)
        url, headers, payload = self.backend.request(prompt)

        for attempt in range(self.max_retries):
            try:
                logger.info(
                    "POST %s for %s (attempt %d/%d)",
                    self.backend.provider.value, file_path, attempt + 1, self.max_retries,
                )
                response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
                response.raise_for_status()
                return ProduceResult(text=self.backend.parse(response.json()))

            except UnexpectedResponse as exc:
                logger.error("%s: %s", self.backend.provider.value, exc)
                return ProduceResult(error=str(exc))

            except ValueError as exc:
                logger.error("Invalid JSON from %s: %s", self.backend.provider.value, exc)
                return ProduceResult(error=f"Invalid JSON response: {exc}")

            except requests.exceptions.RequestException as exc:
                logger.warning("Request failed: %s: %s", type(exc).__name__, exc)

                if attempt < self.max_retries - 1:
                    wait = 2 ** attempt
                    logger.info("Retrying in %ds", wait)
                    time.sleep(wait)
                else:
                    logger.error("All %d attempts failed", self.max_retries)
                    return ProduceResult(error=f"{type(exc).__name__}: {exc}")

        return ProduceResult(error="No attempts made")
