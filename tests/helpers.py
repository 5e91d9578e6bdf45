"""Test helpers for building words at fixed points in time."""

from datetime import datetime, timedelta

from nihongo_study.models.word import Familiarity, Word

# Wednesday; the week runs 2026-03-16 .. 2026-03-22
NOW = datetime(2026, 3, 18, 10, 0, 0)


def make_word(
    word_id: str,
    familiarity: int = 0,
    days_ago: float | None = None,
    now: datetime = NOW,
    **kwargs,
) -> Word:
    last_reviewed_at = None if days_ago is None else now - timedelta(days=days_ago)
    return Word(
        id=word_id,
        kanji=kwargs.pop("kanji", f"漢{word_id}"),
        kana=kwargs.pop("kana", f"かな{word_id}"),
        meaning_zh=kwargs.pop("meaning_zh", f"意思{word_id}"),
        familiarity=Familiarity(familiarity),
        last_reviewed_at=last_reviewed_at,
        **kwargs,
    )
