"""AI analysis request/response models."""

from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kogrammar.models.correction import Correction, StateTag

ProgressCallback = Callable[[int, int, str], None]


class CorrectionContext(BaseModel):
    """Per-correction context window sent to the model."""

    correction_index: int
    original: str
    corrected: list[str]
    help: str = ""
    context_before: str = ""
    context_after: str = ""
    full_context: str = ""
    sentence_context: str | None = None
    is_likely_proper_noun: bool = False
    current_state: StateTag | None = None
    current_value: str | None = None

    @property
    def valid_options(self) -> list[str]:
        return [*self.corrected, self.original]


class AIAnalysisResult(BaseModel):
    """The model's (or user's) chosen resolution for one correction."""

    correction_index: int
    selected_value: str
    confidence: int = 0
    reasoning: str = ""
    is_exception_processed: bool = False
    is_original_kept: bool = False

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> int:
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return 0
        return max(0, min(100, number))


class ModelSelection(BaseModel):
    """One raw item of the JSON array returned by the model.

    Field names follow the camelCase the prompt asks for; snake_case is
    accepted as well since some models normalise keys.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    correction_index: int = Field(alias="correctionIndex")
    selected_value: str = Field(default="", alias="selectedValue")
    confidence: Any = 0
    reasoning: str = ""
    is_exception_processed: bool = Field(default=False, alias="isExceptionProcessed")

    @field_validator("selected_value", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("is_exception_processed", mode="before")
    @classmethod
    def _none_to_false(cls, value: Any) -> Any:
        return False if value is None else value


@dataclass
class AIAnalysisRequest:
    """Everything the orchestrator needs for one analysis run."""

    original_text: str
    corrections: list[Correction]
    context_window: int = 50
    current_states: dict[int, tuple[StateTag, str]] = field(default_factory=dict)
    morpheme_index: Any = None
    enhanced_context: bool = True
    on_progress: ProgressCallback | None = None


@dataclass
class TokenUsageEstimate:
    input_tokens: int
    estimated_output_tokens: int
    total_estimated: int
    estimated_cost: str = ""
