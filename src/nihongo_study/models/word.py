"""Vocabulary models."""

from datetime import datetime
from enum import IntEnum, StrEnum

from pydantic import field_validator

from nihongo_study.models.base import CamelModel, to_local_naive


class JLPTLevel(StrEnum):
    """JLPT proficiency levels, easiest first."""

    N5 = "N5"
    N4 = "N4"
    N3 = "N3"
    N2 = "N2"
    N1 = "N1"


class Familiarity(IntEnum):
    """How well the learner knows a word."""

    DONT_KNOW = 0
    SO_SO = 1
    KNOW = 2
    VERY_FAMILIAR = 3


class Word(CamelModel):
    """A vocabulary item plus its review state."""

    id: str
    level: JLPTLevel = JLPTLevel.N3
    kanji: str
    kana: str
    meaning_zh: str
    example_ja: str | None = None
    example_zh: str | None = None
    familiarity: Familiarity = Familiarity.DONT_KNOW
    last_reviewed_at: datetime | None = None
    flagged: bool = False

    @field_validator("last_reviewed_at")
    @classmethod
    def _naive_local(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Written + phonetic form; two words with the same key are the same word."""
        return (self.kanji, self.kana)
