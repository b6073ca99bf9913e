"""Composes backend calls, extraction, overlap resolution and state into one pipeline."""

import logging
from dataclasses import dataclass, field

from kogrammar.config import settings
from kogrammar.core.ai_orchestrator import AIAnalysisOrchestrator
from kogrammar.core.correction_state import AppliedText, CorrectionStateMachine
from kogrammar.core.extractor import CorrectionExtractor, resolve_overlaps
from kogrammar.core.morpheme_index import MorphemeTokenIndex
from kogrammar.exceptions import KogrammarError
from kogrammar.models.analysis import AIAnalysisRequest, AIAnalysisResult, ProgressCallback
from kogrammar.models.correction import Correction
from kogrammar.services.bareun_client import BareunClient
from kogrammar.services.ignored_words import merge_exception_words

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one spell-check run produced."""

    text: str
    result_output: str
    corrections: list[Correction]
    state_machine: CorrectionStateMachine
    morpheme_index: MorphemeTokenIndex | None = None
    merged_count: int = 0
    skipped_blocks: int = 0
    ai_results: list[AIAnalysisResult] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.corrections)


class SpellCheckPipeline:
    """Owns the backend client (and its morpheme cache) for a session."""

    def __init__(
        self,
        bareun: BareunClient | None = None,
        extractor: CorrectionExtractor | None = None,
        orchestrator: AIAnalysisOrchestrator | None = None,
        ignored_words: list[str] | None = None,
    ):
        self.bareun = bareun or BareunClient()
        self.extractor = extractor or CorrectionExtractor()
        self._orchestrator = orchestrator
        self.ignored_words = sorted(settings.ignored_words if ignored_words is None else ignored_words)

    @property
    def orchestrator(self) -> AIAnalysisOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = AIAnalysisOrchestrator()
        return self._orchestrator

    async def _morpheme_index(self, text: str) -> MorphemeTokenIndex | None:
        """Morpheme index for *text*, or None when analysis is unavailable."""
        try:
            response = await self.bareun.analyze_morphemes(text)
        except KogrammarError as exc:
            logger.warning("Morpheme analysis unavailable, continuing without it: %s", exc)
            return None
        return MorphemeTokenIndex.from_response(response)

    async def check(self, text: str) -> PipelineResult:
        """Spell-check *text* and prepare a state machine for the corrections."""
        if not text.strip():
            logger.info("Empty text, nothing to check")
            return PipelineResult(
                text=text,
                result_output=text,
                corrections=[],
                state_machine=CorrectionStateMachine([], self.ignored_words),
            )

        response = await self.bareun.check_spelling(text)
        extraction = self.extractor.extract(response, text)
        corrections = extraction.corrections

        index = None
        if len(corrections) > 1:
            index = await self._morpheme_index(text)
            before = len(corrections)
            corrections = resolve_overlaps(corrections, text, index)
            if len(corrections) != before:
                logger.info("Overlap resolution: %d -> %d corrections", before, len(corrections))

        return PipelineResult(
            text=text,
            result_output=extraction.result_output,
            corrections=corrections,
            state_machine=CorrectionStateMachine(corrections, self.ignored_words),
            morpheme_index=index,
            merged_count=extraction.merged_count,
            skipped_blocks=extraction.skipped_blocks,
        )

    async def analyze_with_ai(
        self,
        result: PipelineResult,
        on_progress: ProgressCallback | None = None,
    ) -> list[AIAnalysisResult]:
        """Ask the model for a selection per correction and seed the state machine with it."""
        if not result.corrections:
            return []

        orchestrator = self.orchestrator
        orchestrator.check_preconditions()

        if result.morpheme_index is None and orchestrator.settings.enhanced_context:
            result.morpheme_index = await self._morpheme_index(result.text)

        request = AIAnalysisRequest(
            original_text=result.text,
            corrections=result.corrections,
            context_window=orchestrator.settings.context_window,
            current_states=result.state_machine.current_states(),
            morpheme_index=result.morpheme_index,
            enhanced_context=orchestrator.settings.enhanced_context,
            on_progress=on_progress,
        )
        results = await orchestrator.analyze(request)
        result.state_machine.apply_ai_results(results)
        result.ai_results = results
        return results

    def apply(self, result: PipelineResult) -> AppliedText:
        """Final text for *result*; exception words join the session's ignore list."""
        applied = result.state_machine.apply_corrections(result.text)
        self.ignored_words = merge_exception_words(applied.exception_words, self.ignored_words)
        return applied

    def cache_stats(self) -> dict[str, int]:
        return self.bareun.cache_stats()

    def clear_cache(self) -> None:
        self.bareun.clear_cache()
