"""Per-day history ledger.

Records are keyed by local ``YYYY-MM-DD`` date strings, created lazily on the
first event of a day and updated in place afterwards. Nothing is evicted.
"""

from datetime import date

import structlog

from nihongo_study.models.progress import DailyRecord, LearningStats, TodayProgress

logger = structlog.get_logger()


def date_key(day: date) -> str:
    return day.isoformat()


def get_or_create_record(stats: LearningStats, day: date) -> DailyRecord:
    key = date_key(day)
    record = stats.daily_history.get(key)
    if record is None:
        record = DailyRecord()
        stats.daily_history[key] = record
    return record


def record_progress(stats: LearningStats, progress: TodayProgress, today: date) -> DailyRecord:
    """Write today's progress into the ledger and recompute ``completed``.

    Re-running with the same progress converges on the same record.
    """
    record = get_or_create_record(stats, today)
    record.words_learned = progress.done
    record.diary_written = progress.diary_done
    record.completed = record.words_learned >= progress.quota and record.diary_written
    stats.last_active_date = today
    return record


def record_study_time(stats: LearningStats, minutes: int, today: date) -> DailyRecord | None:
    """Add study minutes to today's record.

    Study time accumulates across sessions. Non-positive deltas are
    discarded and return None.
    """
    if minutes <= 0:
        logger.warning("study_time_ignored", minutes=minutes, date=date_key(today))
        return None
    record = get_or_create_record(stats, today)
    record.study_duration += int(minutes)
    return record
