"""Diary entries and the "diary written today" signal."""

import uuid
from collections.abc import Iterable
from datetime import date, datetime

import structlog

from nihongo_study.errors import InvalidInputError
from nihongo_study.models.user import DiaryEntry

logger = structlog.get_logger()


class DiaryJournal:
    """Diary entries, newest first."""

    def __init__(self, entries: Iterable[DiaryEntry] = ()):
        self._entries: list[DiaryEntry] = list(entries)

    @property
    def entries(self) -> list[DiaryEntry]:
        return list(self._entries)

    def get(self, diary_id: str) -> DiaryEntry | None:
        return next((entry for entry in self._entries if entry.id == diary_id), None)

    def today_diary(self, today: date) -> DiaryEntry | None:
        """The most recent entry created on ``today``."""
        prefix = today.isoformat()
        for entry in self._entries:
            if entry.created_at.isoformat().startswith(prefix):
                return entry
        return None

    def diary_done(self, today: date) -> bool:
        return self.today_diary(today) is not None

    def add_entry(
        self,
        original: str,
        now: datetime,
        corrected: str | None = None,
        explanations: list[str] | None = None,
        vocab_ids: list[str] | None = None,
        grammar_points: list[str] | None = None,
    ) -> DiaryEntry:
        if not original.strip():
            raise InvalidInputError("Diary text is empty")
        entry = DiaryEntry(
            id=f"diary-{uuid.uuid4().hex[:12]}",
            created_at=now,
            original=original,
            corrected=corrected,
            explanations=explanations or [],
            vocab_ids=vocab_ids or [],
            grammar_points=grammar_points or [],
        )
        self._entries.insert(0, entry)
        logger.info("diary_entry_added", diary_id=entry.id)
        return entry

    def attach_vocab(self, diary_id: str, word_ids: list[str]) -> DiaryEntry | None:
        """Record which words were extracted from an entry."""
        entry = self.get(diary_id)
        if entry is None:
            logger.warning("diary_entry_missing", diary_id=diary_id)
            return None
        entry.vocab_ids = list(word_ids)
        return entry
