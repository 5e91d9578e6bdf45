"""Tests for the diary journal and the LLM-backed corrector."""

from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from helpers import NOW

from nihongo_study.diary.corrector import (
    DiaryCorrector,
    parse_correction,
    parse_extracted_words,
    strip_markdown,
)
from nihongo_study.diary.journal import DiaryJournal
from nihongo_study.errors import InvalidInputError
from nihongo_study.models.word import Familiarity, JLPTLevel


def _response(content: str | None) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def corrector() -> DiaryCorrector:
    corrector = DiaryCorrector(api_key="test-key")
    corrector.client = MagicMock()
    corrector.client.chat.completions.create = AsyncMock()
    return corrector


class TestDiaryJournal:
    def test_today_diary_by_creation_date(self):
        journal = DiaryJournal()
        journal.add_entry("昨日の日記", NOW - timedelta(days=1))
        assert journal.today_diary(NOW.date()) is None
        assert journal.diary_done(NOW.date()) is False

        entry = journal.add_entry("今日の日記", NOW)
        assert journal.today_diary(NOW.date()) is entry
        assert journal.entries[0] is entry

    def test_empty_entry_rejected(self):
        with pytest.raises(InvalidInputError):
            DiaryJournal().add_entry("   ", NOW)

    def test_attach_vocab(self):
        journal = DiaryJournal()
        entry = journal.add_entry("猫が好きです。", NOW)
        journal.attach_vocab(entry.id, ["w1", "w2"])
        assert entry.vocab_ids == ["w1", "w2"]
        assert journal.attach_vocab("missing", ["w1"]) is None

    def test_entries_at_same_instant_get_distinct_ids(self):
        journal = DiaryJournal()
        first = journal.add_entry("一つ目", NOW)
        second = journal.add_entry("二つ目", NOW)
        assert first.id != second.id
        journal.attach_vocab(first.id, ["w1"])
        assert journal.get(first.id) is first
        assert first.vocab_ids == ["w1"]
        assert second.vocab_ids == []

    def test_other_day_not_done(self):
        journal = DiaryJournal()
        journal.add_entry("日記", NOW)
        assert journal.diary_done(date(2026, 3, 19)) is False


class TestParseCorrection:
    def test_valid_json(self):
        result = parse_correction(
            "original",
            '{"corrected": "直した", "explanations": ["**助詞**の使い方"], "grammarPoints": ["*〜ている*"]}',
        )
        assert result.corrected == "直した"
        assert result.explanations == ["助詞の使い方"]
        assert result.grammar_points == ["〜ている"]

    def test_json_wrapped_in_prose(self):
        result = parse_correction("original", 'Here you go:\n{"corrected": "直した"}\nDone.')
        assert result.corrected == "直した"

    def test_fails_closed_on_garbage(self):
        result = parse_correction("original", "no json here")
        assert result.corrected == "original"
        assert result.explanations == []
        assert result.grammar_points == []

    def test_wrong_shapes_dropped(self):
        result = parse_correction(
            "original", '{"corrected": 5, "explanations": "text", "vocabIds": ["a", 3]}'
        )
        assert result.corrected == "original"
        assert result.explanations == []
        assert result.vocab_ids == ["a"]

    def test_strip_markdown(self):
        assert strip_markdown("**bold** and *italic*") == "bold and italic"


class TestParseExtractedWords:
    def test_valid_items_become_fresh_words(self):
        words = parse_extracted_words(
            '{"words": [{"kanji": "図書館", "kana": "としょかん", "meaningZh": "圖書館"},'
            ' {"kanji": "欠けた"}, "junk"]}',
            JLPTLevel.N2,
        )
        assert len(words) == 1
        word = words[0]
        assert word.kanji == "図書館"
        assert word.level == JLPTLevel.N2
        assert word.familiarity == Familiarity.DONT_KNOW
        assert word.id.startswith("diary-word-")

    def test_missing_words_key(self):
        assert parse_extracted_words('{"items": []}', JLPTLevel.N3) == []
        assert parse_extracted_words(None, JLPTLevel.N3) == []


class TestDiaryCorrector:
    async def test_correct(self, corrector):
        corrector.client.chat.completions.create.return_value = _response(
            '{"corrected": "図書館で勉強しました。", "explanations": ["OK"], "grammarPoints": []}'
        )
        result = await corrector.correct("図書館で勉強します。", JLPTLevel.N3)
        assert result.corrected == "図書館で勉強しました。"
        kwargs = corrector.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "N3" in kwargs["messages"][0]["content"]

    async def test_correct_api_failure_returns_original(self, corrector):
        corrector.client.chat.completions.create.side_effect = RuntimeError("boom")
        result = await corrector.correct("元の文", JLPTLevel.N3)
        assert result.corrected == "元の文"
        assert result.explanations == []

    async def test_extract_words_api_failure_returns_empty(self, corrector):
        corrector.client.chat.completions.create.side_effect = RuntimeError("boom")
        assert await corrector.extract_words("日記", JLPTLevel.N3) == []

    async def test_extract_words(self, corrector):
        corrector.client.chat.completions.create.return_value = _response(
            '{"words": [{"kanji": "猫", "kana": "ねこ", "meaningZh": "貓"}]}'
        )
        words = await corrector.extract_words("猫が好き", JLPTLevel.N5)
        assert [w.kana for w in words] == ["ねこ"]
