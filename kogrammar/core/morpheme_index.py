"""Lookup structures over a morphological analysis response.

Tokens are indexed two ways: by exact surface text, and by the offset at
which they begin. Overlap resolution prefers the offset index since the same
surface text may occur several times in a document.
"""

import logging
from collections import defaultdict

from kogrammar.models.morpheme import MorphemeResponse, MorphemeToken

logger = logging.getLogger(__name__)

# Proper noun, foreign word, hanja, number
PROPER_NOUN_TAGS = frozenset({"NNP", "SL", "SH", "SN"})

TAG_NAMES_KO: dict[str, str] = {
    "NNG": "일반명사",
    "NNP": "고유명사",
    "NNB": "의존명사",
    "VV": "동사",
    "VA": "형용사",
    "VX": "보조용언",
    "MM": "관형사",
    "MAG": "일반부사",
    "SL": "외국어",
    "SH": "한자",
    "SN": "숫자",
}


class MorphemeTokenIndex:
    """Token lookups by exact text and by begin offset."""

    def __init__(self, tokens: list[MorphemeToken]):
        self.tokens = tokens
        self.by_text: dict[str, list[MorphemeToken]] = defaultdict(list)
        self.by_offset: dict[int, list[MorphemeToken]] = defaultdict(list)
        for token in tokens:
            self.by_text[token.content].append(token)
            self.by_offset[token.begin_offset].append(token)

    @classmethod
    def from_response(cls, response: MorphemeResponse) -> "MorphemeTokenIndex":
        tokens = [
            MorphemeToken(
                content=token.text.content,
                begin_offset=token.text.begin_offset,
                tags=tuple(m.tag for m in token.morphemes if m.tag),
            )
            for sentence in response.sentences
            for token in sentence.tokens
        ]
        logger.debug(
            "Indexed %d tokens from %d sentences", len(tokens), len(response.sentences)
        )
        return cls(tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def matches_at(self, text: str, position: int, tolerance: int = 2) -> bool:
        """True if a token equal to *text* begins within *tolerance* chars of *position*."""
        for offset, tokens in self.by_offset.items():
            if abs(offset - position) > tolerance:
                continue
            if any(t.content == text for t in tokens):
                logger.debug("Token boundary match (offset): %r at %d ~ %d", text, offset, position)
                return True

        for token in self.by_text.get(text, []):
            if abs(token.begin_offset - position) <= tolerance:
                logger.debug(
                    "Token boundary match (text): %r at %d ~ %d", text, token.begin_offset, position
                )
                return True
        return False

    def is_proper_noun(self, text: str) -> bool:
        """True if any token with this surface text carries a proper-noun-like tag."""
        for token in self.by_text.get(text, []):
            hit = PROPER_NOUN_TAGS.intersection(token.tags)
            if hit:
                logger.debug("Proper noun by morpheme tag: %r (%s)", text, ", ".join(sorted(hit)))
                return True
        return False

    def pos_info(self, text: str) -> dict | None:
        """Main part of speech (Korean name) and all tags for the first matching token."""
        for token in self.by_text.get(text, []):
            if token.tags:
                main = token.tags[0]
                return {"main_pos": TAG_NAMES_KO.get(main, main), "tags": list(token.tags)}
        return None

    def summary(self, limit: int = 10) -> str:
        """Compact ``content(TAG)`` listing of the first *limit* tokens, for prompts."""
        parts = [
            f"{token.content}({token.tags[0] if token.tags else 'UNK'})"
            for token in self.tokens[:limit]
        ]
        return ", ".join(parts)
