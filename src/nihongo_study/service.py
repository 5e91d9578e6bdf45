"""Study service: owns the learner state and runs the recompute cascade.

Every mutating action follows the same order: repository mutation, deck
refresh, progress, ledger, streak and achievements, then a flush of all
persisted keys. The store is best-effort; a failed save is logged and the
in-memory state stays authoritative until the next flush.
"""

from datetime import date
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from nihongo_study.analysis.trends import (
    days_until_exam,
    familiarity_distribution,
    monthly_trend,
    weekly_trend,
)
from nihongo_study.clock import Clock, SystemClock
from nihongo_study.config import Settings
from nihongo_study.diary.corrector import DiaryCorrector
from nihongo_study.diary.journal import DiaryJournal
from nihongo_study.errors import InvalidInputError
from nihongo_study.models.progress import (
    Achievement,
    DailyRecord,
    FamiliarityBucket,
    LearningStats,
    TodayProgress,
    TrendPoint,
    default_achievements,
)
from nihongo_study.models.user import DiaryCorrection, DiaryEntry, UserSettings
from nihongo_study.models.word import Word
from nihongo_study.progress.aggregator import compute_today_progress
from nihongo_study.progress.ledger import record_progress, record_study_time
from nihongo_study.progress.streak import check_achievements, recompute_streak
from nihongo_study.storage.kv_store import JsonFileStore, KeyValueStore
from nihongo_study.storage.seed import load_seed_words
from nihongo_study.vocabulary.repository import VocabularyRepository
from nihongo_study.vocabulary.scheduler import TodayDeck, refresh_deck

logger = structlog.get_logger()

WORDS_KEY = "words"
WRONG_WORDS_KEY = "wrongWords"
DIARY_KEY = "diaryEntries"
SETTINGS_KEY = "settings"
STATS_KEY = "stats"
ACHIEVEMENTS_KEY = "achievements"
TODAY_DECK_KEY = "todayDeck"

_words_adapter = TypeAdapter(list[Word])
_diary_adapter = TypeAdapter(list[DiaryEntry])
_achievements_adapter = TypeAdapter(list[Achievement])


class StudyService:
    """Single owner of the learner's vocabulary, diary, settings and statistics.

    Args:
        store: Key-value persistence collaborator.
        clock: Source of "now"; defaults to the local wall clock.
        corrector: Optional remote diary corrector.
        default_settings: Settings used on first launch and after a reset.
        seed_loader: Callable returning the starter vocabulary.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock | None = None,
        corrector: DiaryCorrector | None = None,
        default_settings: UserSettings | None = None,
        seed_loader=load_seed_words,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.corrector = corrector
        self._default_settings = default_settings or UserSettings()
        self._seed_loader = seed_loader
        self._reset_state([])
        self.loaded = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "StudyService":
        corrector = None
        if settings.correction_enabled:
            corrector = DiaryCorrector(
                api_key=settings.openai_api_key, model=settings.correction_model
            )
        return cls(
            store=JsonFileStore(settings.store_dir),
            corrector=corrector,
            default_settings=UserSettings(
                main_level=settings.default_main_level,
                words_per_day=settings.default_words_per_day,
            ),
        )

    def _reset_state(self, words: list[Word]) -> None:
        self.repository = VocabularyRepository(words)
        self.journal = DiaryJournal()
        self.settings = self._default_settings.model_copy()
        self.stats = LearningStats()
        self.achievements: list[Achievement] = default_achievements()
        self._deck: TodayDeck | None = None
        self._streak_day: date | None = None
        self._progress = TodayProgress()

    # -- persistence -------------------------------------------------------

    async def _load_key(self, key: str, adapter: TypeAdapter) -> Any | None:
        try:
            raw = await self.store.load(key)
        except Exception:
            logger.exception("state_load_failed", key=key)
            return None
        if raw is None:
            return None
        try:
            return adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning("state_invalid", key=key, errors=e.error_count())
            return None

    async def load(self) -> None:
        """Load persisted state, falling back to defaults key by key."""
        words = await self._load_key(WORDS_KEY, _words_adapter)
        if words is None:
            words = self._seed_loader()
            logger.info("seed_words_loaded", count=len(words))
        wrong_words = await self._load_key(WRONG_WORDS_KEY, _words_adapter) or []
        diary = await self._load_key(DIARY_KEY, _diary_adapter) or []
        settings = await self._load_key(SETTINGS_KEY, TypeAdapter(UserSettings))
        stats = await self._load_key(STATS_KEY, TypeAdapter(LearningStats))
        achievements = await self._load_key(ACHIEVEMENTS_KEY, _achievements_adapter)
        deck = await self._load_key(TODAY_DECK_KEY, TypeAdapter(TodayDeck))

        self.repository = VocabularyRepository(words, (w.id for w in wrong_words))
        self.journal = DiaryJournal(diary)
        self.settings = settings or self._default_settings.model_copy()
        self.stats = stats or LearningStats()
        self.achievements = achievements or default_achievements()
        if deck is not None and not all(word_id in self.repository for word_id in deck.word_ids):
            logger.warning("stored_deck_discarded", day=deck.day.isoformat())
            deck = None
        self._deck = deck
        self._streak_day = None

        # A stored deck from today is reused as long as the quota still matches
        self._recompute(rebuild_deck=deck is None or deck.day != self.clock.today())
        self.loaded = True
        logger.info(
            "state_loaded",
            words=len(self.repository),
            deck=self._progress.quota,
            streak=self.stats.current_streak,
        )
        await self.save()

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready values for every persisted key."""
        data = {
            WORDS_KEY: [word.to_storage() for word in self.repository.words],
            WRONG_WORDS_KEY: [word.to_storage() for word in self.repository.wrong_words],
            DIARY_KEY: [entry.to_storage() for entry in self.journal.entries],
            SETTINGS_KEY: self.settings.to_storage(),
            STATS_KEY: self.stats.to_storage(),
            ACHIEVEMENTS_KEY: [a.to_storage() for a in self.achievements],
        }
        if self._deck is not None:
            data[TODAY_DECK_KEY] = self._deck.to_storage()
        return data

    async def save(self) -> bool:
        """Save each key independently. Returns False if any key failed."""
        ok = True
        for key, value in self.snapshot().items():
            try:
                await self.store.save(key, value)
            except Exception:
                ok = False
                logger.exception("state_save_failed", key=key)
        return ok

    # -- cascade -----------------------------------------------------------

    def _recompute(self, rebuild_deck: bool = False) -> DailyRecord:
        now = self.clock.now()
        today = now.date()
        self._deck = refresh_deck(
            self.repository.words,
            self.settings.words_per_day,
            now,
            self._deck,
            force=rebuild_deck,
        )
        self._progress = compute_today_progress(
            self.today_deck, self.journal.diary_done(today), today
        )
        record = record_progress(self.stats, self._progress, today)
        if record.completed or self._streak_day != today:
            self._update_streak()
        return record

    def _update_streak(self) -> None:
        now = self.clock.now()
        summary = recompute_streak(self.stats, now.date())
        self.achievements = check_achievements(summary.current_streak, self.achievements, now)
        self._streak_day = now.date()

    async def refresh(self) -> bool:
        """Roll state over to a new calendar day if one has started.

        Returns True when a new day's deck was built.
        """
        if self._deck is not None and self._deck.day == self.clock.today():
            return False
        self._recompute()
        await self.save()
        return True

    # -- mutations ---------------------------------------------------------

    async def review_word(self, word_id: str, familiarity: int) -> TodayProgress:
        """Apply a review answer and run the cascade.

        Raises:
            WordNotFoundError: Unknown word; state is unchanged.
            InvalidInputError: Familiarity outside 0-3.
        """
        self.repository.apply_review(word_id, familiarity, self.clock.now())
        self._recompute()
        await self.save()
        return self._progress

    async def flag_word(self, word_id: str, flagged: bool) -> Word:
        word = self.repository.flag(word_id, flagged)
        self._recompute()
        await self.save()
        return word

    async def add_words(self, words: list[Word]) -> list[Word]:
        """Add new words to the library; duplicates are skipped."""
        added = self.repository.add_words(words)
        if added:
            self._recompute(rebuild_deck=True)
            await self.save()
        return added

    async def add_diary_entry(
        self, original: str, correction: DiaryCorrection | None = None
    ) -> DiaryEntry:
        correction = correction or DiaryCorrection(corrected=original)
        entry = self.journal.add_entry(
            original,
            self.clock.now(),
            corrected=correction.corrected,
            explanations=correction.explanations,
            vocab_ids=correction.vocab_ids,
            grammar_points=correction.grammar_points,
        )
        self._recompute()
        await self.save()
        return entry

    async def extract_words_from_diary(self, diary_id: str, words: list[Word]) -> list[Word]:
        """Add words extracted from a diary entry and link them to it.

        Returns:
            The words newly added to the library.
        """
        added = self.repository.add_words(words)
        linked = [
            found.id for found in
            (self.repository.find(word.kanji, word.kana) for word in words)
            if found is not None
        ]
        self.journal.attach_vocab(diary_id, linked)
        self._recompute(rebuild_deck=bool(added))
        await self.save()
        return added

    async def update_settings(self, **changes: Any) -> UserSettings:
        """Merge setting changes; a new ``words_per_day`` rebuilds today's deck.

        Raises:
            InvalidInputError: The merged settings do not validate.
        """
        words_per_day = changes.get("words_per_day")
        if words_per_day is not None and words_per_day < 1:
            raise InvalidInputError("words_per_day must be positive")
        try:
            updated = UserSettings.model_validate(
                {**self.settings.model_dump(), **changes}
            )
        except ValidationError as e:
            raise InvalidInputError(str(e)) from e

        quota_changed = updated.words_per_day != self.settings.words_per_day
        self.settings = updated
        self._recompute(rebuild_deck=quota_changed)
        await self.save()
        logger.info("settings_updated", fields=sorted(changes))
        return self.settings

    async def record_study_time(self, minutes: int) -> DailyRecord | None:
        """Add study minutes to today; non-positive durations are ignored."""
        today = self.clock.today()
        record = record_study_time(self.stats, minutes, today)
        if record is None:
            return None
        if record.completed or self._streak_day != today:
            self._update_streak()
        await self.save()
        return record

    async def reset(self) -> None:
        """Discard all progress and restore the starter vocabulary."""
        try:
            await self.store.clear()
        except Exception:
            logger.exception("state_clear_failed")
        self._reset_state(self._seed_loader())
        self._recompute(rebuild_deck=True)
        logger.info("state_reset")

    # -- views -------------------------------------------------------------

    @property
    def today_deck(self) -> list[Word]:
        if self._deck is None:
            return []
        return self.repository.get_many(self._deck.word_ids)

    @property
    def today_progress(self) -> TodayProgress:
        return self._progress

    @property
    def wrong_words(self) -> list[Word]:
        return self.repository.wrong_words

    @property
    def today_diary(self) -> DiaryEntry | None:
        return self.journal.today_diary(self.clock.today())

    def weekly_trend(self, today: date | None = None) -> list[TrendPoint]:
        return weekly_trend(self.stats.daily_history, today or self.clock.today())

    def monthly_trend(self, today: date | None = None) -> list[TrendPoint]:
        return monthly_trend(self.stats.daily_history, today or self.clock.today())

    def familiarity_distribution(self) -> list[FamiliarityBucket]:
        return familiarity_distribution(self.repository.words)

    def days_until_exam(self) -> int | None:
        return days_until_exam(self.settings, self.clock.today())
