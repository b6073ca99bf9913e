"""Centralized LLM client with multi-provider support.

Every provider implements the same two calls: ``chat(messages, max_tokens,
model) -> str`` and ``fetch_models() -> list[str]``. Only the endpoint,
payload shape and auth header differ.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from kogrammar.config import Settings, settings
from kogrammar.exceptions import BackendRequestFailed, BackendUnreachable, MalformedBackendResponse

logger = logging.getLogger(__name__)


class LLMProvider(str, enum.Enum):
    openai = "openai"
    anthropic = "anthropic"
    google = "google"
    ollama = "ollama"


PROVIDER_DEFAULT_MODELS: dict[LLMProvider, str] = {
    LLMProvider.openai: "gpt-4o-mini",
    LLMProvider.anthropic: "claude-3-haiku-20240307",
    LLMProvider.google: "gemini-1.5-flash",
    LLMProvider.ollama: "llama3.2:3b",
}

OPENAI_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
GOOGLE_BASE_URL = "https://generativelanguage.googleapis.com/v1"

# Model ids worth listing from OpenAI's /models endpoint
OPENAI_MODEL_PREFIXES = ("gpt-", "o1-", "text-", "davinci-", "curie-", "babbage-", "ada-")

# Maximum output tokens per model; unknown models get DEFAULT_MODEL_TOKEN_LIMIT
MODEL_TOKEN_LIMITS: dict[str, int] = {
    "gpt-4o": 16384,
    "gpt-4o-mini": 16384,
    "gpt-4-turbo": 4096,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 4096,
    "gpt-3.5-turbo-16k": 4096,
    "o1-preview": 32768,
    "o1-mini": 65536,
    "claude-3-5-sonnet-20241022": 8192,
    "claude-3-5-haiku-20241022": 8192,
    "claude-3-opus-20240229": 4096,
    "claude-3-sonnet-20240229": 4096,
    "claude-3-haiku-20240307": 4096,
    "gemini-1.5-pro": 8192,
    "gemini-1.5-flash": 8192,
    "gemini-1.5-flash-8b": 8192,
    "gemini-1.0-pro": 2048,
    "llama3.2:3b": 2048,
    "llama3.2:1b": 2048,
    "llama3.1:8b": 2048,
    "mistral:7b": 2048,
    "qwen2:7b": 2048,
}
DEFAULT_MODEL_TOKEN_LIMIT = 2048


@dataclass
class AISettings:
    """Resolved AI configuration for one orchestrator."""

    enabled: bool = False
    provider: LLMProvider = LLMProvider.openai
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    ollama_endpoint: str = "http://localhost:11434"
    model: str = "gpt-4o-mini"
    max_tokens: int = 2000
    temperature: float = 0.1
    context_window: int = 50
    enhanced_context: bool = True
    max_batch_size: int = 8
    batch_delay_seconds: float = 1.5
    timeout_seconds: float = 60.0


def get_ai_settings(source: Settings | None = None) -> AISettings:
    """Build AISettings from environment/config.py settings."""
    s = source or settings
    try:
        provider = LLMProvider(s.ai_provider)
    except ValueError:
        logger.warning("Unknown AI provider %r, falling back to openai", s.ai_provider)
        provider = LLMProvider.openai

    return AISettings(
        enabled=s.ai_enabled,
        provider=provider,
        openai_api_key=s.openai_api_key,
        anthropic_api_key=s.anthropic_api_key,
        google_api_key=s.google_api_key,
        ollama_endpoint=s.ollama_endpoint,
        model=s.ai_model,
        max_tokens=s.ai_max_tokens,
        temperature=s.ai_temperature,
        context_window=s.context_window,
        enhanced_context=s.enhanced_context,
        max_batch_size=s.max_batch_size,
        batch_delay_seconds=s.batch_delay_seconds,
        timeout_seconds=s.llm_timeout_seconds,
    )


def get_api_key(ai: AISettings) -> str:
    """Credential for the configured provider (the endpoint, for Ollama)."""
    if ai.provider == LLMProvider.openai:
        return ai.openai_api_key
    if ai.provider == LLMProvider.anthropic:
        return ai.anthropic_api_key
    if ai.provider == LLMProvider.google:
        return ai.google_api_key
    if ai.provider == LLMProvider.ollama:
        return ai.ollama_endpoint
    return ""


def has_valid_api_key(ai: AISettings) -> bool:
    return bool(get_api_key(ai).strip())


def get_model_max_tokens(model: str) -> int:
    return MODEL_TOKEN_LIMITS.get(model, DEFAULT_MODEL_TOKEN_LIMIT)


def adjust_tokens_for_model(requested: int, model: str) -> int:
    """Cap *requested* output tokens at the model's limit."""
    limit = get_model_max_tokens(model)
    if requested > limit:
        logger.warning("Requested %d tokens exceeds %s limit %d; capping", requested, model, limit)
        return limit
    return requested


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(min=2, max=15),
    retry=retry_if_exception_type((httpx.ConnectError,)),
)
async def _send(
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    payload: dict | None = None,
    timeout: float = 60.0,
) -> httpx.Response:
    """Send one request, retrying only connection failures."""
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0)) as client:
        if method == "GET":
            return await client.get(url, headers=headers)
        return await client.post(url, headers=headers, json=payload)


async def _request_json(
    method: str,
    url: str,
    *,
    provider: str,
    headers: dict[str, str] | None = None,
    payload: dict | None = None,
    timeout: float = 60.0,
) -> dict:
    try:
        response = await _send(method, url, headers=headers, payload=payload, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise BackendUnreachable(f"{provider} request timed out") from exc
    except httpx.TransportError as exc:
        raise BackendUnreachable(f"Cannot reach {provider}: {exc}") from exc

    logger.debug("%s %s -> %d", method, url.split("?")[0], response.status_code)
    if response.status_code != 200:
        logger.error("%s error body: %s", provider, response.text[:500])
        raise BackendRequestFailed(response.status_code, response.text)

    try:
        return response.json()
    except ValueError as exc:
        raise MalformedBackendResponse(f"{provider} response is not JSON") from exc


# ---------------------------------------------------------------------------
# Provider clients
# ---------------------------------------------------------------------------


class LLMClient(ABC):
    """Abstract provider: one chat call, optional model listing."""

    provider: LLMProvider

    def __init__(self, temperature: float = 0.1, timeout: float = 60.0):
        self.temperature = temperature
        self.timeout = timeout

    @abstractmethod
    async def chat(self, messages: list[dict], max_tokens: int, model: str) -> str:
        """Send *messages* and return the reply text."""

    async def fetch_models(self) -> list[str]:
        return []


class OpenAIClient(LLMClient):
    """OpenAI-compatible ``/chat/completions`` client."""

    provider = LLMProvider.openai

    def __init__(self, api_key: str, base_url: str = OPENAI_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    async def chat(self, messages: list[dict], max_tokens: int, model: str) -> str:
        data = await _request_json(
            "POST",
            f"{self.base_url}/chat/completions",
            provider="OpenAI",
            headers=self._headers(),
            payload={
                "model": model,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": self.temperature,
            },
            timeout=self.timeout,
        )
        try:
            return data["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise MalformedBackendResponse("OpenAI response has no message content") from exc

    async def fetch_models(self) -> list[str]:
        if not self.api_key:
            return []
        data = await _request_json(
            "GET", f"{self.base_url}/models", provider="OpenAI", headers=self._headers(), timeout=self.timeout,
        )
        ids = [m.get("id", "") for m in data.get("data", [])]
        return sorted(i for i in ids if i.startswith(OPENAI_MODEL_PREFIXES))


class AnthropicClient(LLMClient):
    """Anthropic Messages API client. System messages go in the ``system`` field."""

    provider = LLMProvider.anthropic

    def __init__(self, api_key: str, url: str = ANTHROPIC_MESSAGES_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = url

    async def chat(self, messages: list[dict], max_tokens: int, model: str) -> str:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        conversation = [m for m in messages if m["role"] != "system"]
        data = await _request_json(
            "POST",
            self.url,
            provider="Anthropic",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
            payload={
                "model": model,
                "max_tokens": max_tokens,
                "temperature": self.temperature,
                "system": system,
                "messages": conversation,
            },
            timeout=self.timeout,
        )
        try:
            return data["content"][0]["text"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise MalformedBackendResponse("Anthropic response has no text content") from exc


class GoogleClient(LLMClient):
    """Gemini ``generateContent`` client."""

    provider = LLMProvider.google

    def __init__(self, api_key: str, base_url: str = GOOGLE_BASE_URL, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    async def chat(self, messages: list[dict], max_tokens: int, model: str) -> str:
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
        ]
        data = await _request_json(
            "POST",
            f"{self.base_url}/models/{model}:generateContent?key={self.api_key}",
            provider="Google",
            headers={"Content-Type": "application/json"},
            payload={
                "contents": contents,
                "generationConfig": {"maxOutputTokens": max_tokens, "temperature": self.temperature},
            },
            timeout=self.timeout,
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise MalformedBackendResponse("Google response has no candidate text") from exc


class OllamaClient(LLMClient):
    """Local Ollama ``/api/generate`` client using a flattened chat transcript."""

    provider = LLMProvider.ollama

    _ROLE_LABELS = {"system": "System", "user": "Human", "assistant": "Assistant"}

    def __init__(self, endpoint: str, **kwargs):
        super().__init__(**kwargs)
        self.endpoint = endpoint.rstrip("/")

    @classmethod
    def build_prompt(cls, messages: list[dict]) -> str:
        parts = [
            f"{cls._ROLE_LABELS[m['role']]}: {m['content']}\n\n"
            for m in messages
            if m["role"] in cls._ROLE_LABELS
        ]
        return "".join(parts) + "Assistant: "

    async def chat(self, messages: list[dict], max_tokens: int, model: str) -> str:
        data = await _request_json(
            "POST",
            f"{self.endpoint}/api/generate",
            provider="Ollama",
            headers={"Content-Type": "application/json"},
            payload={
                "model": model,
                "prompt": self.build_prompt(messages),
                "options": {"num_predict": max_tokens, "temperature": self.temperature},
                "stream": False,
            },
            timeout=self.timeout,
        )
        response = data.get("response")
        if not isinstance(response, str):
            raise MalformedBackendResponse("Ollama response has no text")
        return response.strip()


def create_client(ai: AISettings) -> LLMClient:
    """Instantiate the client for the configured provider."""
    logger.info(
        "Creating %s client (model=%s, credentials=%s)",
        ai.provider.value, ai.model, has_valid_api_key(ai),
    )
    options = {"temperature": ai.temperature, "timeout": ai.timeout_seconds}
    if ai.provider == LLMProvider.openai:
        return OpenAIClient(ai.openai_api_key, **options)
    if ai.provider == LLMProvider.anthropic:
        return AnthropicClient(ai.anthropic_api_key, **options)
    if ai.provider == LLMProvider.google:
        return GoogleClient(ai.google_api_key, **options)
    if ai.provider == LLMProvider.ollama:
        return OllamaClient(ai.ollama_endpoint, **options)
    raise ValueError(f"Unsupported AI provider: {ai.provider}")


async def fetch_available_models(ai: AISettings) -> list[str]:
    """Model ids offered by the provider; empty on failure or when unsupported."""
    if ai.provider in (LLMProvider.ollama, LLMProvider.anthropic):
        return []
    try:
        return await create_client(ai).fetch_models()
    except Exception:
        logger.warning("Failed to fetch models for %s", ai.provider.value, exc_info=True)
        return []
