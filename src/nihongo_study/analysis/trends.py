"""Read-only projections over the daily ledger and vocabulary."""

import calendar
from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from nihongo_study.models.progress import DailyRecord, FamiliarityBucket, TrendPoint
from nihongo_study.models.user import UserSettings
from nihongo_study.models.word import Familiarity, Word


def _trend(history: Mapping[str, DailyRecord], days: Iterable[date]) -> list[TrendPoint]:
    points = []
    for day in days:
        key = day.isoformat()
        record = history.get(key)
        points.append(TrendPoint(
            date=key,
            study_duration=record.study_duration if record else 0,
            words_learned=record.words_learned if record else 0,
        ))
    return points


def weekly_trend(history: Mapping[str, DailyRecord], today: date) -> list[TrendPoint]:
    """Monday-to-Sunday points for the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    return _trend(history, (monday + timedelta(days=i) for i in range(7)))


def monthly_trend(history: Mapping[str, DailyRecord], today: date) -> list[TrendPoint]:
    """One point per day of ``today``'s month, from the 1st to the last day."""
    _, days_in_month = calendar.monthrange(today.year, today.month)
    first = today.replace(day=1)
    return _trend(history, (first + timedelta(days=i) for i in range(days_in_month)))


def familiarity_distribution(words: Iterable[Word]) -> list[FamiliarityBucket]:
    buckets = [FamiliarityBucket(level=int(level)) for level in Familiarity]
    for word in words:
        buckets[int(word.familiarity)].count += 1
    return buckets


def days_until_exam(settings: UserSettings, today: date) -> int | None:
    """Days left until the configured exam date; negative once it has passed."""
    if settings.exam_date is None:
        return None
    return (settings.exam_date - today).days
