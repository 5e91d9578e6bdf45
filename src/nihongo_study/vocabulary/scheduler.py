"""Spaced-repetition scheduling of the daily review deck."""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from pydantic import Field

from nihongo_study.models.base import CamelModel
from nihongo_study.models.word import Familiarity, Word

# Days that must pass after a review before the word is due again
REVIEW_INTERVALS: dict[Familiarity, int] = {
    Familiarity.DONT_KNOW: 0,
    Familiarity.SO_SO: 1,
    Familiarity.KNOW: 3,
    Familiarity.VERY_FAMILIAR: 7,
}

NEVER_REVIEWED = datetime(1970, 1, 1)


class TodayDeck(CamelModel):
    """The ordered word ids selected for one calendar day."""

    day: date
    quota: int
    word_ids: list[str] = Field(default_factory=list)


def review_interval(familiarity: int) -> int:
    return REVIEW_INTERVALS[Familiarity(familiarity)]


def days_since_review(word: Word, now: datetime) -> int | None:
    """Whole days elapsed since the last review, or None if never reviewed."""
    if word.last_reviewed_at is None:
        return None
    return (now - word.last_reviewed_at) // timedelta(days=1)


def is_due(word: Word, now: datetime) -> bool:
    """Whether a word should be reviewed at ``now``.

    A word reviewed earlier on the same calendar day is never due again
    that day, which keeps "don't know" answers from re-entering the deck
    mid-session.
    """
    if word.last_reviewed_at is None:
        return True
    if word.last_reviewed_at.date() == now.date():
        return False
    return days_since_review(word, now) >= review_interval(word.familiarity)


def _priority(word: Word) -> tuple[int, datetime]:
    return (int(word.familiarity), word.last_reviewed_at or NEVER_REVIEWED)


def compute_today_deck(words: Iterable[Word], quota: int, now: datetime) -> list[Word]:
    """Select and order the words due at ``now``.

    Least familiar first, then longest idle (never reviewed first). The sort
    is stable, so repository order breaks remaining ties.

    Args:
        words: All words, in repository order.
        quota: Words per day. Non-positive gives an empty deck.
        now: Current time.

    Returns:
        At most ``quota`` due words.
    """
    if quota <= 0:
        return []
    due = [word for word in words if is_due(word, now)]
    due.sort(key=_priority)
    return due[:quota]


def refresh_deck(
    words: list[Word],
    quota: int,
    now: datetime,
    previous: TodayDeck | None = None,
    force: bool = False,
) -> TodayDeck:
    """Return today's deck, reusing ``previous`` when it is still valid.

    Within the same day the previous deck is reused unless ``force`` is set
    (repository changed) or the quota changed. Any rebuild keeps words
    already reviewed today at the front so finished work still counts: the
    ones from a same-day ``previous`` deck, or, with no same-day deck to go
    on (no stored deck), every word reviewed today, those already done ahead
    of "don't know" answers. Fresh due words fill the remainder.
    """
    today = now.date()
    if previous is not None and previous.day == today and not force and previous.quota == quota:
        return previous

    if quota <= 0:
        return TodayDeck(day=today, quota=quota)

    reviewed_today = {
        word.id for word in words
        if word.last_reviewed_at is not None and word.last_reviewed_at.date() == today
    }
    if previous is not None and previous.day == today:
        kept = [word_id for word_id in previous.word_ids if word_id in reviewed_today]
    else:
        # Words that already count as done go first so a rebuild never lowers progress
        reviewed = [word for word in words if word.id in reviewed_today]
        reviewed.sort(key=lambda word: word.familiarity == Familiarity.DONT_KNOW)
        kept = [word.id for word in reviewed]
    kept = kept[:quota]

    kept_set = set(kept)
    fresh = compute_today_deck(
        (word for word in words if word.id not in kept_set), quota - len(kept), now
    )
    return TodayDeck(day=today, quota=quota, word_ids=kept + [word.id for word in fresh])
