"""AI-assisted resolution of corrections, in serialized batches.

Flow for one run:
1. Check preconditions (enabled, credentials, model, not already running)
2. Build a context window per correction
3. Pass already-resolved corrections (original-kept / exception-processed)
   straight through with full confidence
4. Size batches from the mean context length, then dispatch them one at a
   time with a fixed delay in between
5. Recover JSON from each response and reconcile every selection against the
   options that were offered
6. Fill in defaults for anything the model skipped or a failed batch lost
"""

import asyncio
import logging

from pydantic import ValidationError

from kogrammar.config import HARD_MAX_BATCH_SIZE
from kogrammar.core.context_builder import ContextBuilder
from kogrammar.core.option_matcher import OptionMatcher
from kogrammar.core.prompt_builder import build_analysis_prompt
from kogrammar.exceptions import (
    AIBatchFailure,
    AIDisabled,
    AnalysisInProgress,
    NoApiKeyConfigured,
    NoModelConfigured,
)
from kogrammar.models.analysis import (
    AIAnalysisRequest,
    AIAnalysisResult,
    CorrectionContext,
    ModelSelection,
    TokenUsageEstimate,
)
from kogrammar.models.correction import RESOLVED_TAGS, Correction, StateTag
from kogrammar.services.llm_client import (
    AISettings,
    LLMClient,
    adjust_tokens_for_model,
    create_client,
    fetch_available_models,
    get_ai_settings,
    has_valid_api_key,
)
from kogrammar.services.transport import with_timeout
from kogrammar.utils.json_parser import parse_json_array
from kogrammar.utils.token_estimator import estimate_analysis_token_usage, estimate_cost

logger = logging.getLogger(__name__)

USER_SELECTED_REASONING = "사용자가 직접 선택한 항목입니다."
GAP_FILL_REASONING = "AI 분석에서 누락되어 기본값으로 설정됨"
MISSING_REASONING = "이유가 제공되지 않았습니다."
GAP_FILL_CONFIDENCE = 50

MIN_BATCH_SIZE = 3


def calculate_batch_size(
    contexts: list[CorrectionContext],
    with_morphemes: bool = False,
    max_batch_size: int = HARD_MAX_BATCH_SIZE,
) -> int:
    """Batch size from mean context length; longer contexts mean longer answers."""
    ceiling = min(max_batch_size, HARD_MAX_BATCH_SIZE)
    if not contexts:
        return ceiling

    average = sum(len(ctx.full_context) for ctx in contexts) / len(contexts)
    if average < 50:
        size = 8
    elif average < 100:
        size = 6
    elif average < 200:
        size = 4
    else:
        size = 3

    if with_morphemes:
        size = max(MIN_BATCH_SIZE, size - 1)

    size = min(size, ceiling)
    logger.debug("Batch size %d for mean context length %.1f (morphemes=%s)", size, average, with_morphemes)
    return size


def create_batches(contexts: list[CorrectionContext], size: int) -> list[list[CorrectionContext]]:
    return [contexts[i : i + size] for i in range(0, len(contexts), size)]


def bypass_result(ctx: CorrectionContext) -> AIAnalysisResult:
    """Result for a correction the user already resolved."""
    return AIAnalysisResult(
        correction_index=ctx.correction_index,
        selected_value=ctx.current_value or ctx.original,
        confidence=100,
        reasoning=USER_SELECTED_REASONING,
        is_exception_processed=ctx.current_state == StateTag.EXCEPTION_PROCESSED,
        is_original_kept=ctx.current_state == StateTag.ORIGINAL_KEPT,
    )


def default_result(index: int, correction: Correction) -> AIAnalysisResult:
    """Fallback selection for a correction that got no result."""
    value = correction.corrected[0] if correction.corrected else correction.original
    return AIAnalysisResult(
        correction_index=index,
        selected_value=value,
        confidence=GAP_FILL_CONFIDENCE,
        reasoning=GAP_FILL_REASONING,
        is_original_kept=value == correction.original,
    )


def fill_gaps(results: list[AIAnalysisResult], corrections: list[Correction]) -> list[AIAnalysisResult]:
    """Add defaults for missing indexes and sort by correction index."""
    by_index: dict[int, AIAnalysisResult] = {}
    for result in results:
        by_index.setdefault(result.correction_index, result)

    missing = [i for i in range(len(corrections)) if i not in by_index]
    if missing:
        logger.warning("No AI result for corrections %s; using defaults", missing)
        for index in missing:
            by_index[index] = default_result(index, corrections[index])

    return [by_index[i] for i in sorted(by_index)]


class AIAnalysisOrchestrator:
    """Runs AI analysis over a set of corrections.

    One run at a time per instance; ``cancel()`` stops a run between batches.
    """

    def __init__(self, ai_settings: AISettings | None = None, client: LLMClient | None = None):
        self.settings = ai_settings or get_ai_settings()
        self._client = client
        self.matcher = OptionMatcher()
        self._running = False
        self._cancel_event = asyncio.Event()
        self.last_run_cancelled = False

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def check_preconditions(self) -> None:
        """Raise before any network call when the run cannot start."""
        if not self.settings.enabled:
            raise AIDisabled("AI analysis is disabled")
        if not has_valid_api_key(self.settings):
            provider = self.settings.provider.value
            what = "endpoint" if provider == "ollama" else "API key"
            raise NoApiKeyConfigured(f"No {what} configured for {provider}")
        if not self.settings.model or not self.settings.model.strip():
            raise NoModelConfigured(f"No model configured for {self.settings.provider.value}")

    def cancel(self) -> None:
        """Stop dispatching further batches; the run returns what it has, gap-filled."""
        if self._running:
            logger.info("AI analysis cancellation requested")
        self._cancel_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    async def analyze(self, request: AIAnalysisRequest) -> list[AIAnalysisResult]:
        """Analyze every correction in *request*; one result per correction, sorted."""
        if self._running:
            raise AnalysisInProgress("An AI analysis run is already in progress")
        self.check_preconditions()

        self._running = True
        self._cancel_event.clear()
        self.last_run_cancelled = False
        try:
            return await self._run(request)
        finally:
            self._running = False

    def estimate_token_usage(self, request: AIAnalysisRequest) -> TokenUsageEstimate:
        contexts = self._build_contexts(request)
        usage = estimate_analysis_token_usage(contexts)
        usage.estimated_cost = estimate_cost(usage.total_estimated, self.settings.provider.value)
        return usage

    def is_available(self) -> bool:
        return self.settings.enabled and has_valid_api_key(self.settings)

    def provider_info(self) -> dict:
        return {
            "provider": self.settings.provider.value,
            "model": self.settings.model,
            "available": self.is_available(),
        }

    async def fetch_available_models(self) -> list[str]:
        return await fetch_available_models(self.settings)

    # -----------------------------------------------------------------------
    # Run
    # -----------------------------------------------------------------------

    @property
    def client(self) -> LLMClient:
        if self._client is None:
            self._client = create_client(self.settings)
        return self._client

    def _build_contexts(self, request: AIAnalysisRequest) -> list[CorrectionContext]:
        return ContextBuilder.for_request(request).build(
            request.original_text,
            request.corrections,
            request.current_states,
            request.morpheme_index,
        )

    async def _run(self, request: AIAnalysisRequest) -> list[AIAnalysisResult]:
        contexts = self._build_contexts(request)
        resolved = [ctx for ctx in contexts if ctx.current_state in RESOLVED_TAGS]
        pending = [ctx for ctx in contexts if ctx.current_state not in RESOLVED_TAGS]
        logger.info(
            "AI analysis: %d to analyze, %d already resolved (provider=%s, model=%s)",
            len(pending), len(resolved), self.settings.provider.value, self.settings.model,
        )

        results: list[AIAnalysisResult] = [bypass_result(ctx) for ctx in resolved]

        if pending:
            morpheme_summary = None
            if request.morpheme_index is not None and len(request.morpheme_index) > 0:
                morpheme_summary = request.morpheme_index.summary()
            batch_size = calculate_batch_size(
                pending, morpheme_summary is not None, self.settings.max_batch_size
            )
            results.extend(await self._dispatch(create_batches(pending, batch_size), morpheme_summary, request))

        final = fill_gaps(results, request.corrections)
        logger.info("AI analysis complete: %d results", len(final))
        return final

    async def _dispatch(
        self,
        batches: list[list[CorrectionContext]],
        morpheme_summary: str | None,
        request: AIAnalysisRequest,
    ) -> list[AIAnalysisResult]:
        """Process batches strictly one after another."""
        total = len(batches)
        max_tokens = adjust_tokens_for_model(self.settings.max_tokens, self.settings.model)
        results: list[AIAnalysisResult] = []

        for number, batch in enumerate(batches, 1):
            if self._cancel_event.is_set():
                self._mark_cancelled(number, total)
                break

            if request.on_progress is not None:
                percent = round(number / total * 100)
                request.on_progress(number, total, f"AI 분석 중... ({percent}%)")

            try:
                batch_results = await self._process_batch(batch, number, total, morpheme_summary, max_tokens)
            except Exception as exc:
                failure = AIBatchFailure(number, exc)
                logger.warning("%s; %d corrections left to defaults", failure, len(batch), exc_info=True)
            else:
                results.extend(batch_results)

            if number < total and await self._pause(self.settings.batch_delay_seconds):
                self._mark_cancelled(number + 1, total)
                break

        return results

    def _mark_cancelled(self, next_batch: int, total: int) -> None:
        self.last_run_cancelled = True
        logger.info("AI analysis cancelled before batch %d/%d", next_batch, total)

    async def _pause(self, seconds: float) -> bool:
        """Inter-batch delay. Returns True if cancellation arrived meanwhile."""
        if self._cancel_event.is_set():
            return True
        if seconds <= 0:
            return False
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _process_batch(
        self,
        batch: list[CorrectionContext],
        number: int,
        total: int,
        morpheme_summary: str | None,
        max_tokens: int,
    ) -> list[AIAnalysisResult]:
        logger.info("Batch %d/%d: %d corrections", number, total, len(batch))
        system_prompt, user_prompt = build_analysis_prompt(batch, morpheme_summary)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        raw = await with_timeout(
            self.client.chat(messages, max_tokens, self.settings.model),
            self.settings.timeout_seconds,
            f"AI analysis request timed out ({self.settings.timeout_seconds:g}s)",
        )
        logger.debug("Batch %d response: %s", number, raw[:200])
        return self.parse_batch_response(raw, batch)

    def parse_batch_response(self, raw: str, batch: list[CorrectionContext]) -> list[AIAnalysisResult]:
        """Map a model response onto the batch's corrections.

        Raises AIResponseParseFailure when no JSON array can be recovered.
        """
        items = parse_json_array(raw)
        results: list[AIAnalysisResult] = []
        seen: set[int] = set()

        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object item in AI response: %r", item)
                continue
            try:
                selection = ModelSelection.model_validate(item)
            except ValidationError as exc:
                logger.warning("Skipping invalid AI item (%d errors): %r", exc.error_count(), item)
                continue

            local = selection.correction_index
            if not 0 <= local < len(batch) or local in seen:
                logger.warning("Invalid or duplicate correctionIndex %d in AI response", local)
                continue
            seen.add(local)

            ctx = batch[local]
            reconciled = self.matcher.reconcile(selection.selected_value, ctx.original, ctx.corrected)
            is_exception = selection.is_exception_processed
            value = ctx.original if is_exception else reconciled.value

            results.append(AIAnalysisResult(
                correction_index=ctx.correction_index,
                selected_value=value,
                confidence=selection.confidence,
                reasoning=selection.reasoning or MISSING_REASONING,
                is_exception_processed=is_exception,
                is_original_kept=value == ctx.original and not is_exception,
            ))

        logger.info("Parsed %d/%d results from batch", len(results), len(batch))
        return results
