"""Rough token and cost estimates for AI analysis requests."""

import math
import re

from kogrammar.models.analysis import CorrectionContext, TokenUsageEstimate

_KOREAN_RE = re.compile(r"[ㄱ-ㅣ가-힣]")
_LATIN_RE = re.compile(r"[a-zA-Z]")

KOREAN_TOKENS_PER_CHAR = 1.8
LATIN_TOKENS_PER_CHAR = 0.25
OTHER_TOKENS_PER_CHAR = 0.5

SYSTEM_PROMPT_TOKENS = 150
USER_PROMPT_BASE_TOKENS = 50
TOKENS_PER_CORRECTION = 20
OUTPUT_TOKENS_PER_CORRECTION = 75

# USD per 1M tokens, averaged across input and output
AVERAGE_COST_PER_MILLION = 2.0
USD_TO_KRW = 1350


def estimate_token_count(text: str) -> int:
    if not text:
        return 0
    korean = len(_KOREAN_RE.findall(text))
    latin = len(_LATIN_RE.findall(text))
    other = len(text) - korean - latin
    return math.ceil(
        korean * KOREAN_TOKENS_PER_CHAR
        + latin * LATIN_TOKENS_PER_CHAR
        + other * OTHER_TOKENS_PER_CHAR
    )


def estimate_analysis_token_usage(contexts: list[CorrectionContext]) -> TokenUsageEstimate:
    """Input/output token estimate for analysing *contexts* in one run."""
    user_tokens = USER_PROMPT_BASE_TOKENS + len(contexts) * TOKENS_PER_CORRECTION
    for ctx in contexts:
        user_tokens += estimate_token_count(ctx.full_context)
        user_tokens += estimate_token_count(ctx.original)
        user_tokens += estimate_token_count(", ".join(ctx.corrected))
        user_tokens += estimate_token_count(ctx.help)

    input_tokens = SYSTEM_PROMPT_TOKENS + user_tokens
    output_tokens = len(contexts) * OUTPUT_TOKENS_PER_CORRECTION
    return TokenUsageEstimate(
        input_tokens=input_tokens,
        estimated_output_tokens=output_tokens,
        total_estimated=input_tokens + output_tokens,
    )


def estimate_cost(tokens: int, provider: str) -> str:
    """Human-readable USD/KRW cost. Local models are free."""
    if provider == "ollama":
        return "$0 (local)"
    usd = tokens / 1_000_000 * AVERAGE_COST_PER_MILLION
    krw = usd * USD_TO_KRW
    if usd < 0.001:
        return "< $0.001 (< ₩1)"
    if usd < 0.01:
        return f"~${usd:.4f} (~₩{krw:.0f})"
    return f"~${usd:.3f} (~₩{krw:.0f})"
