"""Turn a Bareun spell-check response into deduplicated corrections.

Flow:
1. Whole-document guard: identical (whitespace-normalized) output means no errors
2. Validate each revision block into a ParsedBlock or MalformedBlock
3. Per block: locate the origin text, clean suggestions, apply the
   single-character filter, then create or merge a Correction keyed by origin
4. Diff fallback when the backend rewrote the text but gave no usable blocks
5. Overlap resolution (``resolve_overlaps``) once morphemes are available
"""

import logging
import re

from kogrammar.config import settings
from kogrammar.core.morpheme_index import MorphemeTokenIndex
from kogrammar.models.correction import Correction
from kogrammar.models.spelling import (
    MalformedBlock,
    ParsedBlock,
    SpellCheckResponse,
    SpellCheckResult,
    parse_block,
    parse_sentence,
)
from kogrammar.utils.text_utils import find_all_positions, normalize_whitespace, overlap_length

logger = logging.getLogger(__name__)

DEFAULT_HELP = "맞춤법 교정"
DIFF_FALLBACK_HELP = "자동 교정됨"

# Differences of this many characters or fewer are treated as cosmetic
MINOR_CHANGE_CHARS = 2

_ALNUM_RE = re.compile(r"[0-9a-zA-Z]")
_PUNCT_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?~`]""")
_HANGUL_RE = re.compile(r"[가-힣]")

# One-character confusions the backend reports reliably enough to keep
SINGLE_CHAR_WHITELIST: dict[str, frozenset[str]] = {
    "되": frozenset({"된", "됨", "돼"}),
    "돼": frozenset({"된", "되"}),
    "안": frozenset({"않"}),
    "않": frozenset({"안"}),
    "의": frozenset({"에", "을", "를"}),
    "에": frozenset({"의", "을"}),
    "을": frozenset({"를", "의"}),
    "를": frozenset({"을", "의"}),
    "이": frozenset({"가", "히"}),
    "가": frozenset({"이"}),
    "히": frozenset({"이", "게"}),
    "게": frozenset({"히", "에"}),
}


def single_char_exception(original: str, suggestion: str) -> str | None:
    """Return why a one-character edit should be kept, or None to drop it."""
    if _ALNUM_RE.search(original) and _HANGUL_RE.search(suggestion):
        return "latin/digit to hangul"
    if _PUNCT_RE.search(original) and _HANGUL_RE.search(suggestion):
        return "punctuation to hangul"
    if suggestion in SINGLE_CHAR_WHITELIST.get(original, ()):
        return "common single-character confusion"
    if len(suggestion) > 1:
        return "multi-character suggestion"
    return None


def apply_single_char_filter(original: str, suggestions: list[str], enabled: bool = True) -> list[str]:
    """Drop one-character suggestions for a one-character origin unless an exception applies."""
    if not enabled or len(original) != 1:
        return suggestions

    kept = []
    for suggestion in suggestions:
        reason = single_char_exception(original, suggestion)
        if reason:
            logger.debug("Single-char %r -> %r kept (%s)", original, suggestion, reason)
            kept.append(suggestion)
        else:
            logger.debug("Single-char %r -> %r filtered", original, suggestion)
    return kept


def clean_suggestions(original: str, raw: list[str]) -> list[str]:
    """Dedupe (first seen wins) and drop empty, origin-equal and broken suggestions."""
    seen: list[str] = []
    for suggestion in raw:
        if suggestion in seen:
            continue
        if (
            not suggestion
            or suggestion == original
            or suggestion.strip() == original.strip()
            or "\ufffd" in suggestion
        ):
            continue
        seen.append(suggestion)
    return seen


class CorrectionExtractor:
    """Parses spell-check responses into ordered Correction records."""

    def __init__(self, filter_single_char_errors: bool | None = None):
        if filter_single_char_errors is None:
            filter_single_char_errors = settings.filter_single_char_errors
        self.filter_single_char_errors = filter_single_char_errors

    def extract(self, response: SpellCheckResponse, text: str) -> SpellCheckResult:
        """Extract corrections from *response* for the source *text*.

        Never raises for malformed blocks: they are logged and counted in
        ``skipped_blocks``.
        """
        result_output = response.revised or text

        if normalize_whitespace(text) == normalize_whitespace(response.revised):
            logger.info("Backend output matches input; no errors found")
            return SpellCheckResult(result_output=text)

        by_original: dict[str, list[str]] = {}
        help_texts: dict[str, str] = {}
        merged = 0
        skipped = 0

        for sentence_number, raw_sentence in enumerate(response.revised_sentences, 1):
            sentence = parse_sentence(raw_sentence)
            if isinstance(sentence, MalformedBlock):
                logger.warning("Skipping malformed sentence %d: %s", sentence_number, sentence.reason)
                skipped += 1
                continue

            for raw_block in sentence.revised_blocks:
                block = parse_block(raw_block)
                if isinstance(block, MalformedBlock):
                    logger.warning("Skipping malformed block in sentence %d: %s", sentence_number, block.reason)
                    skipped += 1
                    continue

                suggestions = self._block_suggestions(block, text)
                if not suggestions:
                    continue

                original = block.origin.content
                existing = by_original.get(original)
                if existing is None:
                    by_original[original] = suggestions
                    comment = block.revisions[0].comment if block.revisions else None
                    help_texts[original] = comment or DEFAULT_HELP
                    logger.debug("New correction %r -> %s", original, suggestions)
                    continue

                added = [s for s in suggestions if s not in existing]
                if added:
                    existing.extend(added)
                    merged += 1
                    logger.debug("Merged suggestions into %r: %s", original, added)
                else:
                    logger.debug("All suggestions for %r already known", original)

        corrections = [
            Correction(original=original, corrected=suggestions, help=help_texts[original])
            for original, suggestions in by_original.items()
        ]

        if not corrections:
            corrections = self._diff_fallback(text, result_output)

        logger.info(
            "Extracted %d corrections (%d merged, %d malformed skipped)",
            len(corrections), merged, skipped,
        )
        return SpellCheckResult(
            result_output=result_output,
            corrections=corrections,
            merged_count=merged,
            skipped_blocks=skipped,
        )

    def _block_suggestions(self, block: ParsedBlock, text: str) -> list[str]:
        """Validated, filtered suggestions for one block; empty means skip it."""
        original = block.origin.content

        if not block.revised or original == block.revised:
            logger.debug("Block %r unchanged, skipping", original)
            return []
        if not original.strip():
            logger.debug("Block with empty origin, skipping")
            return []

        start = block.origin.begin_offset
        if text[start:block.end_offset] != original:
            found = text.find(original)
            if found == -1:
                logger.debug("Block %r not present in source text, skipping", original)
                return []
            # Backend offsets drift when it normalizes the input
            logger.debug("Block %r reported at %d, found at %d", original, start, found)

        suggestions = clean_suggestions(original, [r.revised for r in block.revisions])
        return apply_single_char_filter(original, suggestions, self.filter_single_char_errors)

    def _diff_fallback(self, text: str, revised: str) -> list[Correction]:
        """Word-by-word comparison used when the backend gave no usable blocks."""
        normalized_source = normalize_whitespace(text)
        normalized_result = normalize_whitespace(revised)
        if normalized_source == normalized_result:
            return []
        if abs(len(normalized_source) - len(normalized_result)) <= MINOR_CHANGE_CHARS:
            logger.info("Minor change only; skipping word diff")
            return []

        logger.info("No block details in response; falling back to word diff")
        source_words = re.split(r"(\s+)", text)
        revised_words = re.split(r"(\s+)", revised)

        corrections: list[Correction] = []
        seen: set[str] = set()
        for before, after in zip(source_words, revised_words):
            if before == after or not before.strip() or not after.strip():
                continue
            if before in seen:
                continue
            seen.add(before)
            corrections.append(Correction(original=before, corrected=[after], help=DIFF_FALLBACK_HELP))
        return corrections


# ---------------------------------------------------------------------------
# Overlap resolution
# ---------------------------------------------------------------------------


def _overlapping_group(
    corrections: list[Correction],
    text: str,
    anchor: int,
    length: int,
    consumed: set[str],
) -> list[Correction]:
    """Corrections with any occurrence sharing at least one character with the anchor range."""
    end = anchor + length
    group: list[Correction] = []
    for correction in corrections:
        if correction.original in consumed or any(c.original == correction.original for c in group):
            continue
        for position in find_all_positions(text, correction.original):
            if overlap_length(anchor, end, position, position + len(correction.original)) > 0:
                group.append(correction)
                break
    return group


def _select_survivor(
    group: list[Correction],
    anchor: int,
    index: MorphemeTokenIndex | None,
) -> Correction:
    if index is not None:
        for candidate in group:
            if index.matches_at(candidate.original, anchor):
                logger.debug("Overlap at %d: %r matches a token boundary", anchor, candidate.original)
                return candidate

    longest = max(len(c.original) for c in group)
    survivor = next(c for c in group if len(c.original) == longest)
    logger.debug("Overlap at %d: %r chosen by length", anchor, survivor.original)
    return survivor


def resolve_overlaps(
    corrections: list[Correction],
    text: str,
    index: MorphemeTokenIndex | None = None,
) -> list[Correction]:
    """Keep one correction per group of overlapping spans.

    Survivor priority: token-boundary match within two characters of the
    anchor, then the longest original, then input order. Other group members
    are discarded. Without a morpheme index only the last two rules apply.
    """
    resolved: list[Correction] = []
    consumed: set[str] = set()

    for correction in corrections:
        if correction.original in consumed:
            continue

        positions = find_all_positions(text, correction.original)
        if not positions:
            resolved.append(correction)
            consumed.add(correction.original)
            continue

        anchor = positions[0]
        group = _overlapping_group(corrections, text, anchor, len(correction.original), consumed)
        if len(group) <= 1:
            resolved.append(correction)
            consumed.add(correction.original)
            continue

        survivor = _select_survivor(group, anchor, index)
        resolved.append(survivor)
        consumed.update(c.original for c in group)
        logger.info(
            "Resolved %d overlapping corrections at %d to %r",
            len(group), anchor, survivor.original,
        )

    return resolved
