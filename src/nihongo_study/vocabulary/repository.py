"""In-memory vocabulary repository with review outcome handling."""

from collections.abc import Iterable
from datetime import datetime

import structlog

from nihongo_study.errors import InvalidInputError, WordNotFoundError
from nihongo_study.models.word import Familiarity, Word

logger = structlog.get_logger()


class VocabularyRepository:
    """Holds every known word, in insertion order, plus the wrong-word set.

    The wrong-word set is membership over word ids. It is only changed by
    :meth:`apply_review` and the explicit add/remove helpers, never copied
    from stored snapshots except on construction.

    Args:
        words: Initial words. Later duplicates of an id are ignored.
        wrong_word_ids: Ids of words currently in the wrong-word set.
    """

    def __init__(self, words: Iterable[Word] = (), wrong_word_ids: Iterable[str] = ()):
        self._words: dict[str, Word] = {}
        for word in words:
            self._words.setdefault(word.id, word)
        self._wrong_ids: list[str] = []
        for word_id in wrong_word_ids:
            if word_id in self._words and word_id not in self._wrong_ids:
                self._wrong_ids.append(word_id)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word_id: object) -> bool:
        return word_id in self._words

    @property
    def words(self) -> list[Word]:
        return list(self._words.values())

    @property
    def wrong_word_ids(self) -> list[str]:
        return list(self._wrong_ids)

    @property
    def wrong_words(self) -> list[Word]:
        """Current snapshots of the words in the wrong-word set."""
        return [self._words[word_id] for word_id in self._wrong_ids]

    def get(self, word_id: str) -> Word:
        try:
            return self._words[word_id]
        except KeyError:
            raise WordNotFoundError(word_id) from None

    def find(self, kanji: str, kana: str) -> Word | None:
        """Look a word up by written and phonetic form."""
        return next(
            (word for word in self._words.values() if word.dedup_key == (kanji, kana)), None
        )

    def get_many(self, word_ids: Iterable[str]) -> list[Word]:
        """Resolve ids to words, silently skipping unknown ids."""
        return [self._words[word_id] for word_id in word_ids if word_id in self._words]

    def apply_review(self, word_id: str, familiarity: int, now: datetime) -> Word:
        """Record a review answer for a word.

        Args:
            word_id: Reviewed word.
            familiarity: New familiarity level 0-3.
            now: Review timestamp.

        Returns:
            The updated word.

        Raises:
            WordNotFoundError: ``word_id`` is unknown; nothing is mutated.
            InvalidInputError: ``familiarity`` is outside 0-3.
        """
        word = self.get(word_id)
        try:
            level = Familiarity(familiarity)
        except ValueError:
            raise InvalidInputError(f"Invalid familiarity: {familiarity}") from None

        reviewed_at = now
        if word.last_reviewed_at is not None and now < word.last_reviewed_at:
            logger.warning(
                "review_clock_regressed",
                word_id=word_id,
                last_reviewed_at=word.last_reviewed_at.isoformat(),
                now=now.isoformat(),
            )
            reviewed_at = word.last_reviewed_at

        word.familiarity = level
        word.last_reviewed_at = reviewed_at

        if level == Familiarity.DONT_KNOW:
            self.add_to_wrong_words(word_id)
        elif level >= Familiarity.KNOW:
            self.remove_from_wrong_words(word_id)

        logger.debug("word_reviewed", word_id=word_id, familiarity=int(level))
        return word

    def flag(self, word_id: str, flagged: bool) -> Word:
        word = self.get(word_id)
        word.flagged = flagged
        return word

    def add_to_wrong_words(self, word_id: str) -> bool:
        """Add a word to the wrong-word set. Returns False if already present."""
        self.get(word_id)
        if word_id in self._wrong_ids:
            return False
        self._wrong_ids.append(word_id)
        return True

    def remove_from_wrong_words(self, word_id: str) -> bool:
        if word_id not in self._wrong_ids:
            return False
        self._wrong_ids.remove(word_id)
        return True

    def add_words(self, new_words: Iterable[Word]) -> list[Word]:
        """Append words not already known by id or by (kanji, kana).

        Returns:
            The words actually added, in input order.
        """
        known_keys = {word.dedup_key for word in self._words.values()}
        added: list[Word] = []
        for word in new_words:
            if word.id in self._words or word.dedup_key in known_keys:
                continue
            self._words[word.id] = word
            known_keys.add(word.dedup_key)
            added.append(word)
        if added:
            logger.info("words_added", count=len(added))
        return added
