"""Shared fixtures and payload builders for kogrammar tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from kogrammar.models.spelling import SpellCheckResponse
from kogrammar.services.llm_client import AISettings, LLMProvider
from kogrammar.services.transport import RetryPolicy


def make_block(text: str, original: str, suggestions: list[str], comment: str | None = "맞춤법 오류", offset: int | None = None) -> dict:
    """One Bareun revision block for *original* as it appears in *text*."""
    begin = text.find(original) if offset is None else offset
    return {
        "origin": {"content": original, "beginOffset": begin, "length": len(original)},
        "revised": suggestions[0] if suggestions else "",
        "revisions": [{"revised": s, "comment": comment} for s in suggestions],
    }


def make_spell_response(text: str, revised: str, blocks: list) -> SpellCheckResponse:
    return SpellCheckResponse.model_validate({
        "origin": text,
        "revised": revised,
        "revisedSentences": [{"origin": text, "revised": revised, "revisedBlocks": blocks}],
    })


def make_morpheme_payload(tokens: list[tuple[str, int, str]]) -> dict:
    """Analyze payload with one sentence of ``(content, begin_offset, tag)`` tokens."""
    return {
        "sentences": [
            {
                "text": {"content": " ".join(t[0] for t in tokens), "beginOffset": 0},
                "tokens": [
                    {
                        "text": {"content": content, "beginOffset": offset},
                        "morphemes": [
                            {"text": {"content": content, "beginOffset": offset}, "tag": tag}
                        ],
                    }
                    for content, offset, tag in tokens
                ],
            }
        ],
        "language": "ko_KR",
    }


def make_mock_response(data, status_code: int = 200):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = data
    mock_response.text = json.dumps(data, ensure_ascii=False)
    return mock_response


def make_mock_client(responses):
    """httpx.AsyncClient stand-in; *responses* feeds successive get/post calls."""
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(side_effect=responses)
    mock_client.get = AsyncMock(side_effect=responses)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    return mock_client


def selection_json(*items: tuple[int, str, int]) -> str:
    """Model answer text for ``(correctionIndex, selectedValue, confidence)`` triples."""
    return json.dumps(
        [
            {
                "correctionIndex": index,
                "selectedValue": value,
                "isExceptionProcessed": False,
                "confidence": confidence,
                "reasoning": "문맥상 적절함",
            }
            for index, value, confidence in items
        ],
        ensure_ascii=False,
    )


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy with no backoff delay."""
    return RetryPolicy(max_retries=2, base_delay=0, max_delay=0)


@pytest.fixture
def ai_settings() -> AISettings:
    return AISettings(
        enabled=True,
        provider=LLMProvider.openai,
        openai_api_key="sk-test",
        model="gpt-4o-mini",
        batch_delay_seconds=0,
        timeout_seconds=5,
    )
