"""Tests for token and cost estimates."""

from kogrammar.models.analysis import CorrectionContext
from kogrammar.utils.token_estimator import (
    estimate_analysis_token_usage,
    estimate_cost,
    estimate_token_count,
)


class TestEstimateTokenCount:
    def test_empty(self):
        assert estimate_token_count("") == 0

    def test_korean(self):
        assert estimate_token_count("가나") == 4

    def test_latin(self):
        assert estimate_token_count("abcd") == 1

    def test_mixed(self):
        assert estimate_token_count("가a") == 3
        assert estimate_token_count("가 1") == 3


class TestEstimateAnalysisTokenUsage:
    def test_no_contexts(self):
        usage = estimate_analysis_token_usage([])
        assert usage.input_tokens == 200
        assert usage.estimated_output_tokens == 0
        assert usage.total_estimated == 200

    def test_counts_context_content(self):
        ctx = CorrectionContext(correction_index=0, original="가", corrected=["나"], help="", full_context="가나")
        usage = estimate_analysis_token_usage([ctx])
        # 150 system + 50 base + 20 per correction + 4 context + 2 original + 2 suggestions
        assert usage.input_tokens == 228
        assert usage.estimated_output_tokens == 75
        assert usage.total_estimated == 303


class TestEstimateCost:
    def test_local_is_free(self):
        assert estimate_cost(1_000_000, "ollama") == "$0 (local)"

    def test_tiny(self):
        assert estimate_cost(100, "openai") == "< $0.001 (< ₩1)"

    def test_small(self):
        assert estimate_cost(2500, "openai") == "~$0.0050 (~₩7)"

    def test_large(self):
        assert estimate_cost(1_000_000, "anthropic") == "~$2.000 (~₩2700)"
