"""User settings and diary models."""

from datetime import date, datetime

from pydantic import Field, field_validator

from nihongo_study.models.base import CamelModel, to_local_naive
from nihongo_study.models.word import JLPTLevel


class UserSettings(CamelModel):
    """Learner preferences persisted under the ``settings`` key."""

    main_level: JLPTLevel = JLPTLevel.N3
    words_per_day: int = 10
    reminder_time: str = "21:30"
    notifications_enabled: bool = False
    exam_date: date | None = None


class DiaryEntry(CamelModel):
    """A diary entry written by the learner, with the optional correction."""

    id: str
    created_at: datetime
    original: str
    corrected: str | None = None
    explanations: list[str] = Field(default_factory=list)
    vocab_ids: list[str] = Field(default_factory=list)
    grammar_points: list[str] = Field(default_factory=list)

    @field_validator("created_at")
    @classmethod
    def _naive_local(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class DiaryCorrection(CamelModel):
    """Structured result of a remote diary correction."""

    corrected: str
    explanations: list[str] = Field(default_factory=list)
    vocab_ids: list[str] = Field(default_factory=list)
    grammar_points: list[str] = Field(default_factory=list)
