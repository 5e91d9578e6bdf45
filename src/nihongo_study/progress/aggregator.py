"""Today's completion progress."""

from collections.abc import Sequence
from datetime import date

from nihongo_study.models.progress import TodayProgress
from nihongo_study.models.word import Familiarity, Word


def is_done_today(word: Word, today: date) -> bool:
    """Reviewed today and not left at "don't know"."""
    if word.last_reviewed_at is None:
        return False
    return word.last_reviewed_at.date() == today and word.familiarity >= Familiarity.SO_SO


def compute_today_progress(deck: Sequence[Word], diary_done: bool, today: date) -> TodayProgress:
    return TodayProgress(
        quota=len(deck),
        done=sum(1 for word in deck if is_done_today(word, today)),
        diary_done=diary_done,
    )
