"""Reconcile a model's selected value against the options it was offered."""

import logging
import re
from dataclasses import dataclass

import Levenshtein

logger = logging.getLogger(__name__)

# Values models emit when they mean "leave the original alone"
KEEP_ORIGINAL_SENTINELS = frozenset({"", "원본유지", "예외처리", "keep original", "exception"})

SIMILARITY_THRESHOLD = 0.7

_NOISE_RE = re.compile(r"""[\s*~\-+\[\]`"']""")


def clean_value(value: str) -> str:
    """Drop whitespace and markdown/punctuation noise models add around values."""
    return _NOISE_RE.sub("", value)


def similarity(a: str, b: str) -> float:
    """``1 - distance / max(len)``; identical empty strings are fully similar."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - Levenshtein.distance(a, b) / longest


def find_best_match(value: str, options: list[str]) -> tuple[str | None, str]:
    """Best option for *value* and the rule that matched, or ``(None, "none")``."""
    if value in options:
        return value, "exact"

    cleaned = clean_value(value)
    cleaned_options = [(option, clean_value(option)) for option in options]

    for option, cleaned_option in cleaned_options:
        if cleaned == cleaned_option:
            return option, "normalized"

    if cleaned:
        for option, cleaned_option in cleaned_options:
            if cleaned_option and (cleaned in cleaned_option or cleaned_option in cleaned):
                return option, "containment"

    best: str | None = None
    best_distance = None
    for option in options:
        if similarity(value, option) < SIMILARITY_THRESHOLD:
            continue
        distance = Levenshtein.distance(value, option)
        if best_distance is None or distance < best_distance:
            best, best_distance = option, distance
    if best is not None:
        return best, "levenshtein"

    return None, "none"


@dataclass
class Reconciliation:
    value: str
    rule: str

    @property
    def fell_back(self) -> bool:
        return self.rule in ("sentinel", "fallback")


class OptionMatcher:
    """Maps a free-form model selection onto ``{original} ∪ corrected``."""

    def reconcile(self, selected: str, original: str, corrected: list[str]) -> Reconciliation:
        options = [*corrected, original]
        if selected in options:
            return Reconciliation(selected, "exact")

        if selected.strip().lower() in KEEP_ORIGINAL_SENTINELS:
            logger.debug("Sentinel %r mapped to original %r", selected, original)
            return Reconciliation(original, "sentinel")

        match, rule = find_best_match(selected, options)
        if match is not None:
            logger.info("Reconciled %r to option %r (%s)", selected, match, rule)
            return Reconciliation(match, rule)

        logger.warning(
            "Selection %r matches none of %s; keeping original %r", selected, options, original
        )
        return Reconciliation(original, "fallback")
