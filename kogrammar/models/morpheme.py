"""Morphological analysis response models (Bareun ``/analyze``)."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class TextSpan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    begin_offset: int = Field(default=-1, alias="beginOffset")
    length: int = 0


class Morpheme(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: TextSpan
    tag: str = ""
    probability: float = 0.0
    out_of_vocab: str = Field(default="", alias="outOfVocab")


class Token(BaseModel):
    text: TextSpan
    morphemes: list[Morpheme] = []
    lemma: str = ""
    tagged: str = ""
    modified: str = ""


class Sentence(BaseModel):
    text: TextSpan
    tokens: list[Token] = []
    refined: str = ""


class MorphemeResponse(BaseModel):
    """Top-level analysis payload: sentences of tokens of morphemes."""

    sentences: list[Sentence] = []
    language: str = ""

    @property
    def token_count(self) -> int:
        return sum(len(s.tokens) for s in self.sentences)


@dataclass(frozen=True)
class MorphemeToken:
    """Flattened token used for overlap resolution and proper-noun lookups."""

    content: str
    begin_offset: int
    tags: tuple[str, ...] = ()
