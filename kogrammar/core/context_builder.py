"""Context windows around each correction for AI analysis."""

import logging
import re

from kogrammar.core.morpheme_index import MorphemeTokenIndex
from kogrammar.models.analysis import AIAnalysisRequest, CorrectionContext
from kogrammar.models.correction import Correction

logger = logging.getLogger(__name__)

SENTENCE_BOUNDARIES = ".?!。\n"

# Fallback heuristics, tried in order when morpheme tags are unavailable
PROPER_NOUN_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("capitalized word", re.compile(r"^[A-Z][a-z]+")),
    ("acronym", re.compile(r"^[A-Z]{2,}$")),
    ("honorific", re.compile(r"(씨|님|선생|교수|박사)$")),
    ("administrative unit", re.compile(r"^[가-힣]{2,}(시|도|군|구|동|읍|면|리)$")),
    ("year", re.compile(r"^\d{4}년?$")),
    ("filename", re.compile(r"^[\w가-힣-]+\.[A-Za-z0-9]{1,5}$")),
]


def is_likely_proper_noun(text: str, index: MorphemeTokenIndex | None = None) -> bool:
    """Morpheme tags first, then the regex heuristics."""
    word = text.strip()
    if not word:
        return False
    if index is not None and index.is_proper_noun(word):
        return True
    for name, pattern in PROPER_NOUN_PATTERNS:
        if pattern.search(word):
            logger.debug("Proper noun by heuristic (%s): %r", name, word)
            return True
    return False


def sentence_around(text: str, start: int, end: int) -> str:
    """The sentence enclosing ``text[start:end]``, trimmed."""
    sentence_start = start
    while sentence_start > 0 and text[sentence_start - 1] not in SENTENCE_BOUNDARIES:
        sentence_start -= 1

    sentence_end = end
    while sentence_end < len(text) and text[sentence_end] not in SENTENCE_BOUNDARIES:
        sentence_end += 1
    # keep the terminating punctuation, but not a newline
    if sentence_end < len(text) and text[sentence_end] != "\n":
        sentence_end += 1

    return text[sentence_start:sentence_end].strip()


class ContextBuilder:
    """Builds one CorrectionContext per correction."""

    def __init__(self, context_window: int = 50, enhanced: bool = True):
        self.context_window = context_window
        self.enhanced = enhanced

    @classmethod
    def for_request(cls, request: AIAnalysisRequest) -> "ContextBuilder":
        return cls(context_window=request.context_window, enhanced=request.enhanced_context)

    def build(
        self,
        text: str,
        corrections: list[Correction],
        current_states: dict | None = None,
        morpheme_index: MorphemeTokenIndex | None = None,
    ) -> list[CorrectionContext]:
        current_states = current_states or {}
        return [
            self.build_one(text, index, correction, current_states.get(index), morpheme_index)
            for index, correction in enumerate(corrections)
        ]

    def build_one(
        self,
        text: str,
        index: int,
        correction: Correction,
        state: tuple | None = None,
        morpheme_index: MorphemeTokenIndex | None = None,
    ) -> CorrectionContext:
        current_state, current_value = state if state else (None, None)
        position = text.find(correction.original)

        if position == -1:
            logger.warning("Correction text not found in document: %r", correction.original)
            return CorrectionContext(
                correction_index=index,
                original=correction.original,
                corrected=correction.corrected,
                help=correction.help,
                full_context=correction.original,
                current_state=current_state,
                current_value=current_value,
            )

        end = position + len(correction.original)
        window_start = max(0, position - self.context_window)
        window_end = min(len(text), end + self.context_window)

        sentence_context = None
        proper_noun = False
        if self.enhanced:
            proper_noun = is_likely_proper_noun(correction.original, morpheme_index)
            sentence_context = sentence_around(text, position, end)

        return CorrectionContext(
            correction_index=index,
            original=correction.original,
            corrected=correction.corrected,
            help=correction.help,
            context_before=text[window_start:position].strip(),
            context_after=text[end:window_end].strip(),
            full_context=text[window_start:window_end].strip(),
            sentence_context=sentence_context,
            is_likely_proper_noun=proper_noun,
            current_state=current_state,
            current_value=current_value,
        )
