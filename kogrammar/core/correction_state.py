"""Per-correction resolution state with a four-state toggle cycle.

Forward cycle for a correction with suggestions ``[original, *corrected]``::

    error -> corrected[0] -> ... -> corrected[-1] -> exception-processed
          -> original-kept -> error

``toggle_prev`` walks the same cycle backwards. Corrections that share a core
word (see :func:`kogrammar.utils.text_utils.core_word`) are kept in lockstep.
"""

import logging
import re
from dataclasses import dataclass, field

from kogrammar.exceptions import InvalidCorrectionIndex
from kogrammar.models.analysis import AIAnalysisResult
from kogrammar.models.correction import Correction, CorrectionState, StateTag
from kogrammar.utils.text_utils import core_word

logger = logging.getLogger(__name__)


@dataclass
class AppliedText:
    """Result of applying every resolved correction to a text."""

    final_text: str
    exception_words: list[str] = field(default_factory=list)


class CorrectionStateMachine:
    """Owns one CorrectionState per correction index for a single analysis run."""

    def __init__(self, corrections: list[Correction], ignored_words: list[str] | None = None):
        self.corrections = list(corrections)
        self.ignored_words = list(ignored_words or [])
        self._core_words = [core_word(c.original) for c in self.corrections]
        self._states: list[CorrectionState] = []

        for correction in self.corrections:
            if correction.original in self.ignored_words:
                self._states.append(CorrectionState(correction.original, is_original_kept=True))
            else:
                self._states.append(CorrectionState(correction.original))

        kept = sum(1 for s in self._states if s.is_original_kept)
        logger.debug("State machine initialized: %d corrections, %d pre-ignored", len(self._states), kept)

    def __len__(self) -> int:
        return len(self.corrections)

    def _check_index(self, index: int) -> Correction:
        if not 0 <= index < len(self.corrections):
            raise InvalidCorrectionIndex(index, len(self.corrections))
        return self.corrections[index]

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_state(self, index: int) -> CorrectionState:
        self._check_index(index)
        state = self._states[index]
        return CorrectionState(state.value, state.is_exception, state.is_original_kept)

    def get_value(self, index: int) -> str:
        self._check_index(index)
        return self._states[index].value

    def get_display_state(self, index: int) -> StateTag:
        correction = self._check_index(index)
        return self._states[index].tag(correction.original)

    def get_all_states(self) -> list[StateTag]:
        return [s.tag(c.original) for c, s in zip(self.corrections, self._states)]

    def current_states(self) -> dict[int, tuple[StateTag, str]]:
        """``{index: (tag, value)}`` snapshot handed to the AI orchestrator."""
        return {
            i: (s.tag(c.original), s.value)
            for i, (c, s) in enumerate(zip(self.corrections, self._states))
        }

    def is_selected(self, index: int, candidate: str) -> bool:
        """Whether *candidate* is the current choice.

        Passing the original text asks about the exception choice: it is
        selected only while the correction is exception-processed.
        """
        correction = self._check_index(index)
        state = self._states[index]
        if candidate == correction.original:
            return state.is_exception
        return state.value == candidate and not state.is_exception and not state.is_original_kept

    def get_exception_words(self) -> list[str]:
        words: list[str] = []
        for correction, state in zip(self.corrections, self._states):
            if state.is_exception and correction.original not in words:
                words.append(correction.original)
        return words

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def set_state(
        self,
        index: int,
        value: str,
        *,
        is_exception: bool = False,
        is_original_kept: bool = False,
        sync: bool = True,
    ) -> CorrectionState:
        """Set a state directly. Flagged states always carry the original value."""
        correction = self._check_index(index)
        if is_exception and is_original_kept:
            raise ValueError("A correction cannot be both exception-processed and original-kept")
        if is_exception or is_original_kept:
            value = correction.original

        self._states[index] = CorrectionState(value, is_exception, is_original_kept)
        if sync:
            self._sync_core_word(index)
        return self.get_state(index)

    def toggle(self, index: int) -> CorrectionState:
        """Advance one step forward in the cycle."""
        correction = self._check_index(index)
        tag = self.get_display_state(index)

        if tag is StateTag.ORIGINAL_KEPT:
            new = CorrectionState(correction.original)
        elif tag is StateTag.EXCEPTION_PROCESSED:
            new = CorrectionState(correction.original, is_original_kept=True)
        else:
            suggestions = correction.suggestions
            current = self._states[index].value
            next_index = suggestions.index(current) + 1 if current in suggestions else 0
            if next_index >= len(suggestions):
                new = CorrectionState(correction.original, is_exception=True)
            else:
                new = CorrectionState(suggestions[next_index])

        return self._transition(index, tag, new)

    def toggle_prev(self, index: int) -> CorrectionState:
        """Step one position backward in the cycle."""
        correction = self._check_index(index)
        tag = self.get_display_state(index)

        if tag is StateTag.ERROR:
            new = CorrectionState(correction.original, is_original_kept=True)
        elif tag is StateTag.ORIGINAL_KEPT:
            new = CorrectionState(correction.original, is_exception=True)
        elif tag is StateTag.EXCEPTION_PROCESSED:
            if correction.corrected:
                new = CorrectionState(correction.corrected[-1])
            else:
                new = CorrectionState(correction.original)
        else:
            suggestions = correction.suggestions
            current = self._states[index].value
            position = suggestions.index(current) if current in suggestions else 0
            new = CorrectionState(suggestions[max(position - 1, 0)])

        return self._transition(index, tag, new)

    def _transition(self, index: int, old_tag: StateTag, new: CorrectionState) -> CorrectionState:
        self._states[index] = new
        logger.debug(
            "Correction %d (%r): %s -> %s %r",
            index, self.corrections[index].original, old_tag.value,
            new.tag(self.corrections[index].original).value, new.value,
        )
        self._sync_core_word(index)
        return self.get_state(index)

    def _sync_core_word(self, index: int) -> list[int]:
        """Copy the state of *index* onto every correction with the same core word."""
        source = self._states[index]
        source_original = self.corrections[index].original
        key = self._core_words[index]
        if not key:
            return []

        synced = []
        for j, other in enumerate(self.corrections):
            if j == index or self._core_words[j] != key:
                continue
            # Unresolved and flagged states are expressed through each correction's own original
            value = other.original if source.value == source_original else source.value
            self._states[j] = CorrectionState(value, source.is_exception, source.is_original_kept)
            synced.append(j)

        if synced:
            logger.debug("Synchronized core word %r from %d to %s", key, index, synced)
        return synced

    def apply_ai_results(self, results: list[AIAnalysisResult]) -> int:
        """Seed states from AI selections; returns how many were applied.

        Results are applied per index without core-word synchronization.
        """
        applied = 0
        for result in results:
            if not 0 <= result.correction_index < len(self.corrections):
                logger.warning("Ignoring AI result for unknown index %d", result.correction_index)
                continue
            self.set_state(
                result.correction_index,
                result.selected_value,
                is_exception=result.is_exception_processed,
                is_original_kept=result.is_original_kept and not result.is_exception_processed,
                sync=False,
            )
            applied += 1
        logger.info("Applied %d AI results", applied)
        return applied

    def apply_corrections(self, text: str) -> AppliedText:
        """Apply every resolved value to *text*, replacing all literal occurrences.

        Exception-processed originals are collected instead of replaced.
        """
        final_text = text
        exception_words: list[str] = []

        for index in range(len(self.corrections) - 1, -1, -1):
            correction = self.corrections[index]
            state = self._states[index]

            if state.is_exception:
                if correction.original not in exception_words:
                    exception_words.append(correction.original)
                continue
            if state.is_original_kept or state.value == correction.original:
                continue

            pattern = re.compile(re.escape(correction.original))
            final_text = pattern.sub(lambda _m, v=state.value: v, final_text)

        logger.info(
            "Applied corrections: %d exception words collected", len(exception_words)
        )
        return AppliedText(final_text=final_text, exception_words=exception_words)
