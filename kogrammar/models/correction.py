"""Correction records and per-correction resolution state."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class Correction(BaseModel):
    """One flagged substring of the input and its ordered replacement suggestions.

    Identity is the ``original`` text: every occurrence of the same substring in
    the document shares one Correction.
    """

    model_config = ConfigDict(frozen=True)

    original: str
    corrected: list[str]
    help: str = "맞춤법 교정"

    @field_validator("corrected")
    @classmethod
    def _clean_suggestions(cls, value: list[str], info: ValidationInfo) -> list[str]:
        """Drop empty, duplicate and original-equal suggestions, keeping order."""
        original = info.data.get("original", "")
        cleaned: list[str] = []
        for suggestion in value:
            if not suggestion or suggestion == original or suggestion in cleaned:
                continue
            cleaned.append(suggestion)
        return cleaned

    @property
    def suggestions(self) -> list[str]:
        """Forward-toggle cycle: the original followed by every suggestion."""
        return [self.original, *self.corrected]


class StateTag(str, Enum):
    ERROR = "error"
    CORRECTED = "corrected"
    EXCEPTION_PROCESSED = "exception-processed"
    ORIGINAL_KEPT = "original-kept"


RESOLVED_TAGS = frozenset({StateTag.EXCEPTION_PROCESSED, StateTag.ORIGINAL_KEPT})


@dataclass
class CorrectionState:
    """Resolution state of a single correction index."""

    value: str
    is_exception: bool = False
    is_original_kept: bool = False

    def as_triple(self) -> tuple[str, bool, bool]:
        return (self.value, self.is_exception, self.is_original_kept)

    def tag(self, original: str) -> StateTag:
        if self.is_original_kept:
            return StateTag.ORIGINAL_KEPT
        if self.is_exception:
            return StateTag.EXCEPTION_PROCESSED
        if self.value != original:
            return StateTag.CORRECTED
        return StateTag.ERROR
