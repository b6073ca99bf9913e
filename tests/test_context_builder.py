"""Tests for context windows and proper-noun detection."""

from kogrammar.core.context_builder import ContextBuilder, is_likely_proper_noun, sentence_around
from kogrammar.core.morpheme_index import MorphemeTokenIndex
from kogrammar.models.analysis import AIAnalysisRequest
from kogrammar.models.correction import Correction, StateTag
from kogrammar.models.morpheme import MorphemeToken


TEXT = "서울시에서 홍길동님을 만났다. 그는 반가웠다."


class TestIsLikelyProperNoun:
    """Tests for is_likely_proper_noun."""

    def test_heuristics(self):
        assert is_likely_proper_noun("Obsidian")
        assert is_likely_proper_noun("API")
        assert is_likely_proper_noun("홍길동님")
        assert is_likely_proper_noun("강남구")
        assert is_likely_proper_noun("2024년")
        assert is_likely_proper_noun("보고서.pdf")

    def test_plain_words(self):
        assert not is_likely_proper_noun("먹었따")
        assert not is_likely_proper_noun("")
        assert not is_likely_proper_noun("카카오")

    def test_morpheme_tag(self):
        index = MorphemeTokenIndex([MorphemeToken("카카오", 0, ("NNP",))])
        assert is_likely_proper_noun("카카오", index)


class TestSentenceAround:
    def test_keeps_terminating_punctuation(self):
        start = TEXT.find("홍길동님")
        assert sentence_around(TEXT, start, start + 4) == "서울시에서 홍길동님을 만났다."

    def test_second_sentence(self):
        start = TEXT.find("반가웠다")
        assert sentence_around(TEXT, start, start + 4) == "그는 반가웠다."

    def test_newline_boundary_excluded(self):
        text = "첫 줄\n둘째 줄 오류\n셋째"
        start = text.find("오류")
        assert sentence_around(text, start, start + 2) == "둘째 줄 오류"


class TestContextBuilder:
    """Tests for ContextBuilder."""

    def test_window_around_correction(self):
        builder = ContextBuilder(context_window=5)
        [ctx] = builder.build(TEXT, [Correction(original="홍길동님", corrected=["홍길동 님"])])

        assert ctx.context_before == "울시에서"
        assert ctx.context_after == "을 만났다"
        assert ctx.full_context == "울시에서 홍길동님을 만났다"
        assert ctx.sentence_context == "서울시에서 홍길동님을 만났다."
        assert ctx.is_likely_proper_noun

    def test_window_clamped_at_text_edges(self):
        builder = ContextBuilder(context_window=100)
        [ctx] = builder.build(TEXT, [Correction(original="서울시에서", corrected=["서울시 에서"])])
        assert ctx.context_before == ""
        assert ctx.full_context == TEXT

    def test_not_found_uses_original(self):
        builder = ContextBuilder()
        [ctx] = builder.build(TEXT, [Correction(original="없는말", corrected=["있는말"])])
        assert ctx.full_context == "없는말"
        assert ctx.context_before == ""

    def test_plain_mode_skips_enrichment(self):
        builder = ContextBuilder(context_window=5, enhanced=False)
        [ctx] = builder.build(TEXT, [Correction(original="홍길동님", corrected=["홍길동 님"])])
        assert ctx.sentence_context is None
        assert not ctx.is_likely_proper_noun

    def test_current_state_attached(self):
        builder = ContextBuilder()
        corrections = [Correction(original="만났다", corrected=["만나다"])]
        [ctx] = builder.build(TEXT, corrections, {0: (StateTag.CORRECTED, "만나다")})
        assert ctx.current_state is StateTag.CORRECTED
        assert ctx.current_value == "만나다"
        assert ctx.valid_options == ["만나다", "만났다"]

    def test_for_request(self):
        request = AIAnalysisRequest(original_text=TEXT, corrections=[], context_window=7, enhanced_context=False)
        builder = ContextBuilder.for_request(request)
        assert builder.context_window == 7
        assert not builder.enhanced
