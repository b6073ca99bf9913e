"""Bareun grammar backend client (morpheme analysis and spell check)."""

import logging

import httpx
from pydantic import ValidationError

from kogrammar.config import settings
from kogrammar.exceptions import (
    BackendRequestFailed,
    BackendUnreachable,
    MalformedBackendResponse,
    NoApiKeyConfigured,
)
from kogrammar.models.morpheme import MorphemeResponse
from kogrammar.models.spelling import SpellCheckResponse
from kogrammar.services.cache import LRUCache, hash_text
from kogrammar.services.transport import RetryPolicy, describe, with_retry, with_timeout

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/bareun/api/v1/analyze"
CORRECT_ERROR_PATH = "/bareun/api/v1/correct-error"


class BareunClient:
    """Async client for the Bareun REST API.

    Morpheme results are cached per client in an LRU keyed by a text hash.
    """

    def __init__(
        self,
        api_key: str | None = None,
        host: str | None = None,
        port: int | None = None,
        *,
        cache: LRUCache | None = None,
        retry_policy: RetryPolicy | None = None,
        morpheme_timeout: float | None = None,
        spelling_timeout: float | None = None,
    ):
        self.api_key = settings.bareun_api_key if api_key is None else api_key
        self.host = host or settings.bareun_host
        self.port = port or settings.bareun_port
        self.cache = cache if cache is not None else LRUCache(settings.morpheme_cache_size)
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.morpheme_timeout = morpheme_timeout or settings.morpheme_timeout_seconds
        self.spelling_timeout = spelling_timeout or settings.spelling_timeout_seconds

    @property
    def base_url(self) -> str:
        protocol = "https" if self.port == 443 else "http"
        port = "" if self.port in (443, 80) else f":{self.port}"
        return f"{protocol}://{self.host}{port}"

    def _require_api_key(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise NoApiKeyConfigured("Bareun API key is not configured")

    async def _post(self, path: str, body: dict, timeout: float) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "api-key": self.api_key}
        logger.debug("POST %s (%d chars)", url, len(body["document"]["content"]))

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=5.0)) as client:
                response = await client.post(url, headers=headers, json=body)
        except httpx.TimeoutException as exc:
            raise BackendUnreachable(f"Request to {path} timed out") from exc
        except httpx.TransportError as exc:
            raise BackendUnreachable(f"Cannot reach grammar backend: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.error("Bareun error %d: %s", response.status_code, response.text[:500])
            raise BackendRequestFailed(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedBackendResponse(f"Response from {path} is not JSON") from exc
        if not isinstance(data, dict):
            raise MalformedBackendResponse(f"Response from {path} is not an object")
        return data

    async def analyze_morphemes(self, text: str) -> MorphemeResponse:
        """Morphological analysis of *text*, served from cache when possible."""
        self._require_api_key()
        key = f"morpheme_{hash_text(text)}"
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Morpheme cache hit (%s)", key)
            return cached

        body = {
            "document": {"content": text, "language": "ko-KR"},
            "encoding_type": "UTF8",
        }

        async def _request() -> dict:
            return await with_timeout(
                self._post(ANALYZE_PATH, body, self.morpheme_timeout),
                self.morpheme_timeout,
                f"Morpheme analysis timed out ({self.morpheme_timeout:g}s)",
            )

        data = await with_retry(_request, f"morpheme-analysis-{describe(text)}", self.retry_policy)
        try:
            result = MorphemeResponse.model_validate(data)
        except ValidationError as exc:
            raise MalformedBackendResponse(f"Unexpected morpheme response: {exc.error_count()} error(s)") from exc

        logger.info(
            "Morpheme analysis: %d sentences, %d tokens", len(result.sentences), result.token_count
        )
        self.cache.set(key, result)
        return result

    async def check_spelling(self, text: str) -> SpellCheckResponse:
        """Raw spell-check response for *text* (extraction happens elsewhere)."""
        self._require_api_key()
        body = {
            "document": {"content": text, "type": "PLAIN_TEXT"},
            "encoding_type": "UTF8",
            "auto_split": False,
        }

        async def _request() -> dict:
            return await with_timeout(
                self._post(CORRECT_ERROR_PATH, body, self.spelling_timeout),
                self.spelling_timeout,
                f"Spell check timed out ({self.spelling_timeout:g}s)",
            )

        data = await with_retry(_request, f"spell-check-{describe(text)}", self.retry_policy)
        try:
            result = SpellCheckResponse.model_validate(data)
        except ValidationError as exc:
            raise MalformedBackendResponse(f"Unexpected spell-check response: {exc.error_count()} error(s)") from exc

        logger.info("Spell check: %d revised sentences", len(result.revised_sentences))
        return result

    def cache_stats(self) -> dict[str, int]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Morpheme cache cleared")
