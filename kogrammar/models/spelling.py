"""Spell-check response models (Bareun ``/correct-error``).

Blocks are kept as raw payloads on the response and validated one at a time
into either a :class:`ParsedBlock` or a :class:`MalformedBlock`, so a single
bad block never invalidates the whole response.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from kogrammar.models.correction import Correction


class BlockOrigin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    begin_offset: int = Field(alias="beginOffset")
    length: int


class Revision(BaseModel):
    revised: str
    comment: str | None = None


class ParsedBlock(BaseModel):
    """A validated revision block."""

    origin: BlockOrigin
    revised: str
    revisions: list[Revision]

    @property
    def end_offset(self) -> int:
        return self.origin.begin_offset + self.origin.length


@dataclass
class MalformedBlock:
    """A revision block that failed validation; carried only for logging."""

    raw: Any
    reason: str


class RevisedSentence(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    origin: str = ""
    revised: str = ""
    revised_blocks: list[Any] = Field(default_factory=list, alias="revisedBlocks")

    @field_validator("origin", "revised", "revised_blocks", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name == "revised_blocks" else ""
        return value


class SpellCheckResponse(BaseModel):
    """Top-level payload. Sentences stay raw until the extractor validates them."""

    model_config = ConfigDict(populate_by_name=True)

    origin: str = ""
    revised: str = ""
    revised_sentences: list[Any] = Field(default_factory=list, alias="revisedSentences")

    @field_validator("origin", "revised", "revised_sentences", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name == "revised_sentences" else ""
        return value


def parse_block(raw: Any) -> ParsedBlock | MalformedBlock:
    """Validate one raw revision block."""
    if not isinstance(raw, dict):
        return MalformedBlock(raw=raw, reason=f"expected object, got {type(raw).__name__}")
    try:
        return ParsedBlock.model_validate(raw)
    except ValidationError as exc:
        missing = ", ".join(".".join(str(p) for p in e["loc"]) for e in exc.errors())
        return MalformedBlock(raw=raw, reason=f"invalid fields: {missing}")


@dataclass
class SpellCheckResult:
    """Extractor output: the backend's revised text plus structured corrections."""

    result_output: str
    corrections: list[Correction] = field(default_factory=list)
    merged_count: int = 0
    skipped_blocks: int = 0


def parse_sentence(raw: Any) -> RevisedSentence | MalformedBlock:
    """Validate one raw revised sentence (its blocks are validated later)."""
    if not isinstance(raw, dict):
        return MalformedBlock(raw=raw, reason=f"expected object, got {type(raw).__name__}")
    try:
        return RevisedSentence.model_validate(raw)
    except ValidationError as exc:
        return MalformedBlock(raw=raw, reason=f"invalid sentence: {exc.error_count()} error(s)")
