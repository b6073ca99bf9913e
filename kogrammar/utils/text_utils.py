"""Text helpers shared by the extractor, state machine and context builder."""

import re

_WHITESPACE_RE = re.compile(r"\s+")
_PAREN_SUFFIX_RE = re.compile(r"\s*\([^)]*\)\s*$")
_HANGUL_RE = re.compile(r"[가-힣]")

# Trailing particles stripped when computing a core word, longest first so
# that "에서" is tried before "에".
KOREAN_PARTICLES: tuple[str, ...] = tuple(
    sorted(
        (
            "은", "는", "이", "가", "을", "를", "에", "에서", "로", "으로",
            "와", "과", "도", "만", "까지", "부터", "처럼", "같이", "보다",
            "마다", "조차", "마저", "라도", "나마", "이나", "거나",
        ),
        key=len,
        reverse=True,
    )
)


def normalize_whitespace(text: str) -> str:
    """Trim and collapse every whitespace run to a single space."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def find_all_positions(text: str, pattern: str) -> list[int]:
    """Return every start offset of *pattern* in *text*, overlapping matches included."""
    if not pattern:
        return []
    positions: list[int] = []
    index = text.find(pattern)
    while index != -1:
        positions.append(index)
        index = text.find(pattern, index + 1)
    return positions


def overlap_length(start_a: int, end_a: int, start_b: int, end_b: int) -> int:
    """Number of characters shared by two half-open ranges (0 when they only touch)."""
    return max(0, min(end_a, end_b) - max(start_a, start_b))


def contains_hangul(text: str) -> bool:
    return bool(_HANGUL_RE.search(text))


def core_word(word: str) -> str:
    """Reduce a correction's original text to the word it is about.

    Drops a parenthesized suffix (``"단어(word)"`` -> ``"단어"``) and at most one
    trailing particle, never the whole word.
    """
    stripped = _PAREN_SUFFIX_RE.sub("", word).strip()
    for particle in KOREAN_PARTICLES:
        if stripped.endswith(particle) and len(stripped) > len(particle):
            stripped = stripped[: -len(particle)]
            break
    return stripped.strip()
