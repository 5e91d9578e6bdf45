"""Smoke tests for API routes."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from helpers import make_word

from nihongo_study.api.routes import router
from nihongo_study.models.user import DiaryCorrection, UserSettings
from nihongo_study.service import StudyService
from nihongo_study.storage.kv_store import JsonFileStore


@pytest.fixture
def service(tmp_path, clock) -> StudyService:
    return StudyService(
        store=JsonFileStore(tmp_path / "store"),
        clock=clock,
        default_settings=UserSettings(words_per_day=5),
        seed_loader=lambda: [make_word(f"w{i}") for i in range(8)],
    )


@pytest.fixture
def client(service):
    app = FastAPI()
    app.include_router(router)
    with TestClient(app) as c:
        c.portal.call(service.load)
        with patch("nihongo_study.api.routes.get_service", return_value=service):
            yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestServiceUnavailable:
    def test_deck_before_load(self):
        app = FastAPI()
        app.include_router(router)
        with TestClient(app) as c:
            response = c.get("/api/deck")
        assert response.status_code == 503


class TestDeckAndReview:
    def test_deck(self, client):
        response = client.get("/api/deck")
        assert response.status_code == 200
        deck = response.json()
        assert [w["id"] for w in deck] == ["w0", "w1", "w2", "w3", "w4"]
        assert "meaningZh" in deck[0]

    def test_review_updates_progress(self, client):
        response = client.post("/api/words/w0/review", json={"familiarity": 2})
        assert response.status_code == 200
        assert response.json() == {"quota": 5, "done": 1, "diaryDone": False}

    def test_review_unknown_word(self, client):
        response = client.post("/api/words/nope/review", json={"familiarity": 2})
        assert response.status_code == 404

    def test_review_invalid_familiarity(self, client):
        response = client.post("/api/words/w0/review", json={"familiarity": 7})
        assert response.status_code == 422

    def test_wrong_words_and_distribution(self, client):
        client.post("/api/words/w1/review", json={"familiarity": 0})
        client.post("/api/words/w2/review", json={"familiarity": 3})
        wrong = client.get("/api/words/wrong").json()
        assert [w["id"] for w in wrong] == ["w1"]
        buckets = client.get("/api/words/distribution").json()
        assert [b["count"] for b in buckets] == [7, 0, 0, 1]

    def test_flag(self, client):
        response = client.post("/api/words/w3/flag", json={"flagged": True})
        assert response.json()["flagged"] is True


class TestStatsAndSettings:
    def test_study_time_and_trends(self, client):
        response = client.post("/api/study-time", json={"minutes": 15})
        assert response.status_code == 200
        assert response.json()["studyDuration"] == 15
        weekly = client.get("/api/trends/weekly").json()
        assert len(weekly) == 7
        assert weekly[2] == {"date": "2026-03-18", "studyDuration": 15, "wordsLearned": 0}
        assert len(client.get("/api/trends/monthly").json()) == 31

    def test_study_time_must_be_positive(self, client):
        assert client.post("/api/study-time", json={"minutes": 0}).status_code == 422

    def test_stats_and_achievements(self, client):
        stats = client.get("/api/stats").json()
        assert stats["currentStreak"] == 0
        achievements = client.get("/api/achievements").json()
        assert [a["id"] for a in achievements] == ["streak-3", "streak-7", "streak-14", "streak-30"]

    def test_update_settings(self, client):
        response = client.patch("/api/settings", json={"words_per_day": 10, "exam_date": "2026-07-05"})
        assert response.status_code == 200
        assert response.json()["wordsPerDay"] == 10
        assert len(client.get("/api/deck").json()) == 8
        assert client.get("/api/exam-countdown").json() == {"daysUntilExam": 109}

    def test_clear_exam_date(self, client):
        client.patch("/api/settings", json={"exam_date": "2026-07-05"})
        response = client.patch("/api/settings", json={"exam_date": None})
        assert response.status_code == 200
        assert response.json()["examDate"] is None
        assert response.json()["wordsPerDay"] == 5
        assert client.get("/api/exam-countdown").json() == {"daysUntilExam": None}

    def test_null_for_required_setting_rejected(self, client):
        assert client.patch("/api/settings", json={"words_per_day": None}).status_code == 400

    def test_update_settings_out_of_range(self, client):
        assert client.patch("/api/settings", json={"words_per_day": 100}).status_code == 422


class TestDiary:
    def test_create_without_corrector(self, client):
        response = client.post("/api/diary", json={"original": "猫が好きです。"})
        assert response.status_code == 200
        assert response.json()["corrected"] == "猫が好きです。"
        assert client.get("/api/progress").json()["diaryDone"] is True
        assert len(client.get("/api/diary").json()) == 1

    def test_correct_requires_corrector(self, client):
        response = client.post("/api/diary/correct", json={"text": "猫"})
        assert response.status_code == 503

    def test_create_with_corrector(self, client, service):
        service.corrector = MagicMock()
        service.corrector.correct = AsyncMock(
            return_value=DiaryCorrection(corrected="猫が好きだ。", explanations=["casual"])
        )
        response = client.post("/api/diary", json={"original": "猫が好きです。"})
        assert response.json()["corrected"] == "猫が好きだ。"
        assert response.json()["explanations"] == ["casual"]

    def test_extract_words(self, client, service):
        entry = client.post("/api/diary", json={"original": "図書館へ行った。"}).json()
        service.corrector = MagicMock()
        service.corrector.extract_words = AsyncMock(
            return_value=[make_word("lib", kanji="図書館", kana="としょかん")]
        )
        response = client.post(f"/api/diary/{entry['id']}/extract-words")
        assert response.status_code == 200
        assert [w["id"] for w in response.json()] == ["lib"]

    def test_extract_words_unknown_diary(self, client):
        assert client.post("/api/diary/missing/extract-words").status_code == 404


class TestReset:
    def test_reset(self, client):
        client.post("/api/words/w0/review", json={"familiarity": 0})
        assert client.post("/api/reset").json() == {"status": "reset"}
        assert client.get("/api/words/wrong").json() == []
