"""REST API routes over the study service."""

from datetime import date

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from nihongo_study.errors import InvalidInputError, WordNotFoundError
from nihongo_study.models.progress import (
    Achievement,
    DailyRecord,
    FamiliarityBucket,
    LearningStats,
    TodayProgress,
    TrendPoint,
)
from nihongo_study.models.user import DiaryCorrection, DiaryEntry, UserSettings
from nihongo_study.models.word import JLPTLevel, Word
from nihongo_study.service import StudyService

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

WORDS_PER_DAY_MIN = 5
WORDS_PER_DAY_MAX = 50

_service: StudyService | None = None


def set_service(service: StudyService | None) -> None:
    global _service
    _service = service


def get_service() -> StudyService:
    if _service is None or not _service.loaded:
        raise HTTPException(status_code=503, detail="Study data not loaded")
    return _service


class ReviewRequest(BaseModel):
    familiarity: int = Field(ge=0, le=3)


class FlagRequest(BaseModel):
    flagged: bool


class StudyTimeRequest(BaseModel):
    minutes: int = Field(gt=0)


class SettingsUpdate(BaseModel):
    main_level: JLPTLevel | None = None
    words_per_day: int | None = Field(default=None, ge=WORDS_PER_DAY_MIN, le=WORDS_PER_DAY_MAX)
    reminder_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    notifications_enabled: bool | None = None
    exam_date: date | None = None


class DiaryRequest(BaseModel):
    original: str = Field(min_length=1)
    correct: bool = True


class DiaryTextRequest(BaseModel):
    text: str = Field(min_length=1)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/deck")
async def get_today_deck() -> list[Word]:
    """Words scheduled for review today, in review order."""
    service = get_service()
    await service.refresh()
    return service.today_deck


@router.get("/progress")
async def get_today_progress() -> TodayProgress:
    service = get_service()
    await service.refresh()
    return service.today_progress


@router.post("/words/{word_id}/review")
async def review_word(word_id: str, body: ReviewRequest) -> TodayProgress:
    """Record a review answer and return the updated progress."""
    service = get_service()
    try:
        return await service.review_word(word_id, body.familiarity)
    except WordNotFoundError:
        raise HTTPException(status_code=404, detail="Word not found")
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/words/{word_id}/flag")
async def flag_word(word_id: str, body: FlagRequest) -> Word:
    service = get_service()
    try:
        return await service.flag_word(word_id, body.flagged)
    except WordNotFoundError:
        raise HTTPException(status_code=404, detail="Word not found")


@router.get("/words/wrong")
async def get_wrong_words() -> list[Word]:
    return get_service().wrong_words


@router.get("/words/distribution")
async def get_familiarity_distribution() -> list[FamiliarityBucket]:
    return get_service().familiarity_distribution()


@router.get("/stats")
async def get_stats() -> LearningStats:
    service = get_service()
    await service.refresh()
    return service.stats


@router.get("/achievements")
async def get_achievements() -> list[Achievement]:
    return get_service().achievements


@router.get("/trends/weekly")
async def get_weekly_trend() -> list[TrendPoint]:
    return get_service().weekly_trend()


@router.get("/trends/monthly")
async def get_monthly_trend() -> list[TrendPoint]:
    return get_service().monthly_trend()


@router.post("/study-time")
async def record_study_time(body: StudyTimeRequest) -> DailyRecord:
    record = await get_service().record_study_time(body.minutes)
    if record is None:
        raise HTTPException(status_code=400, detail="Study time must be positive")
    return record


@router.get("/settings")
async def get_user_settings() -> UserSettings:
    return get_service().settings


@router.patch("/settings")
async def update_user_settings(body: SettingsUpdate) -> UserSettings:
    changes = body.model_dump(exclude_unset=True)
    try:
        return await get_service().update_settings(**changes)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/exam-countdown")
async def get_exam_countdown() -> dict:
    return {"daysUntilExam": get_service().days_until_exam()}


@router.get("/diary")
async def list_diary_entries() -> list[DiaryEntry]:
    return get_service().journal.entries


@router.post("/diary")
async def create_diary_entry(body: DiaryRequest) -> DiaryEntry:
    """Save today's diary, corrected by the language model when available."""
    service = get_service()
    correction: DiaryCorrection | None = None
    if body.correct and service.corrector is not None:
        correction = await service.corrector.correct(body.original, service.settings.main_level)
    try:
        return await service.add_diary_entry(body.original, correction)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/diary/correct")
async def correct_diary(body: DiaryTextRequest) -> DiaryCorrection:
    """Preview a correction without saving an entry."""
    service = get_service()
    if service.corrector is None:
        raise HTTPException(status_code=503, detail="Diary correction is not configured")
    return await service.corrector.correct(body.text, service.settings.main_level)


@router.post("/diary/{diary_id}/extract-words")
async def extract_diary_words(diary_id: str) -> list[Word]:
    """Extract study words from a diary entry and add the new ones to the library."""
    service = get_service()
    entry = service.journal.get(diary_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Diary entry not found")
    if service.corrector is None:
        raise HTTPException(status_code=503, detail="Diary correction is not configured")
    words = await service.corrector.extract_words(entry.original, service.settings.main_level)
    return await service.extract_words_from_diary(diary_id, words)


@router.post("/reset")
async def reset_all_data() -> dict:
    await get_service().reset()
    logger.info("reset_requested")
    return {"status": "reset"}
