"""Daily history, streak statistics and achievement models."""

from datetime import date, datetime

from pydantic import Field, field_validator

from nihongo_study.models.base import CamelModel, to_local_naive


class DailyRecord(CamelModel):
    """Learning activity for one calendar day."""

    words_learned: int = Field(default=0, ge=0)
    diary_written: bool = False
    completed: bool = False
    study_duration: int = Field(default=0, ge=0)  # minutes


class LearningStats(CamelModel):
    """Derived streak aggregate plus the per-day ledger it is computed from."""

    current_streak: int = 0
    longest_streak: int = 0
    total_days: int = 0
    last_active_date: date | None = None
    daily_history: dict[str, DailyRecord] = Field(default_factory=dict)


class Achievement(CamelModel):
    """Streak milestone, unlocked once and kept until a full reset."""

    id: str
    title: str
    description: str = ""
    icon: str = ""
    requirement: int
    unlocked_at: datetime | None = None

    @field_validator("unlocked_at")
    @classmethod
    def _naive_local(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)

    @property
    def unlocked(self) -> bool:
        return self.unlocked_at is not None


def default_achievements() -> list[Achievement]:
    """Fresh copy of the built-in achievement catalog."""
    return [
        Achievement(id="streak-3", title="Beginner", description="Study 3 days in a row",
                    icon="🌱", requirement=3),
        Achievement(id="streak-7", title="Persistent", description="Study 7 days in a row",
                    icon="🔥", requirement=7),
        Achievement(id="streak-14", title="Determined", description="Study 14 days in a row",
                    icon="⭐", requirement=14),
        Achievement(id="streak-30", title="Master", description="Study 30 days in a row",
                    icon="👑", requirement=30),
    ]


class TodayProgress(CamelModel):
    """Completion of today's deck and diary."""

    quota: int = 0
    done: int = 0
    diary_done: bool = False


class StreakSummary(CamelModel):
    current_streak: int
    longest_streak: int
    total_days: int


class TrendPoint(CamelModel):
    """One day in a weekly or monthly study trend."""

    date: str
    study_duration: int = 0
    words_learned: int = 0


class FamiliarityBucket(CamelModel):
    level: int
    count: int = 0
