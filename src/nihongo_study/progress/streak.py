"""Streak computation and achievement unlocking."""

from collections.abc import Sequence
from datetime import date, datetime, timedelta

import structlog

from nihongo_study.models.progress import Achievement, LearningStats, StreakSummary
from nihongo_study.progress.ledger import date_key

logger = structlog.get_logger()

STREAK_WINDOW_DAYS = 365


def current_streak(stats: LearningStats, today: date) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open.

    An incomplete today does not break the run; any other gap does.
    """
    streak = 0
    for offset in range(STREAK_WINDOW_DAYS):
        record = stats.daily_history.get(date_key(today - timedelta(days=offset)))
        if record is not None and record.completed:
            streak += 1
        elif offset > 0:
            break
    return streak


def recompute_streak(stats: LearningStats, today: date) -> StreakSummary:
    """Refresh the streak fields on ``stats``.

    ``longest_streak`` only ever grows; ``total_days`` counts every completed
    record in the ledger, not just the recent window.
    """
    stats.current_streak = current_streak(stats, today)
    stats.total_days = sum(1 for record in stats.daily_history.values() if record.completed)
    stats.longest_streak = max(stats.longest_streak, stats.current_streak)
    return StreakSummary(
        current_streak=stats.current_streak,
        longest_streak=stats.longest_streak,
        total_days=stats.total_days,
    )


def check_achievements(
    streak: int,
    achievements: Sequence[Achievement],
    now: datetime,
) -> list[Achievement]:
    """Unlock every locked achievement whose requirement ``streak`` meets.

    Already-unlocked achievements are returned unchanged.
    """
    updated: list[Achievement] = []
    for achievement in achievements:
        if achievement.unlocked_at is None and streak >= achievement.requirement:
            achievement = achievement.model_copy(update={"unlocked_at": now})
            logger.info(
                "achievement_unlocked",
                achievement_id=achievement.id,
                requirement=achievement.requirement,
                streak=streak,
            )
        updated.append(achievement)
    return updated
