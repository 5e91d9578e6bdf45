"""LLM-backed diary correction and vocabulary extraction."""

import json
import re
import uuid

import structlog
from openai import AsyncOpenAI
from pydantic import ValidationError

from nihongo_study.models.user import DiaryCorrection
from nihongo_study.models.word import Familiarity, JLPTLevel, Word

logger = structlog.get_logger()

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")

CORRECTION_SYSTEM_PROMPT = """\
You are a Japanese teacher correcting a learner's diary. The learner's JLPT \
level is {level}. Correct grammar and unnatural phrasing, keep the learner's \
meaning, and explain each change briefly in Traditional Chinese. Use plain \
text without Markdown.

Respond ONLY with a JSON object:
{{
    "corrected": "<corrected Japanese text>",
    "explanations": ["<explanation>", ...],
    "grammarPoints": ["<grammar point>", ...]
}}
"""

EXTRACTION_SYSTEM_PROMPT = """\
You are a Japanese teacher. From the learner's diary, pick the vocabulary \
worth studying for a JLPT {level} learner (at most 10 words).

Respond ONLY with a JSON object:
{{
    "words": [
        {{
            "kanji": "<written form>",
            "kana": "<reading in kana>",
            "meaningZh": "<meaning in Traditional Chinese>",
            "exampleJa": "<example sentence>",
            "exampleZh": "<translation of the example>"
        }}
    ]
}}
"""


def strip_markdown(text: str) -> str:
    return _ITALIC.sub(r"\1", _BOLD.sub(r"\1", text))


def parse_json_object(text: str | None) -> dict:
    """Parse a JSON object from model output, tolerating surrounding prose.

    Returns an empty dict when nothing usable is found.
    """
    if not text:
        return {}
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if match is None:
            return {}
        try:
            result = json.loads(match.group(0))
        except json.JSONDecodeError:
            return {}
    return result if isinstance(result, dict) else {}


def parse_correction(original: str, text: str | None) -> DiaryCorrection:
    """Build a correction from model output, failing closed to the original text."""
    data = parse_json_object(text)

    def _strings(key: str) -> list[str]:
        values = data.get(key)
        if not isinstance(values, list):
            return []
        return [v for v in values if isinstance(v, str)]

    corrected = data.get("corrected")
    return DiaryCorrection(
        corrected=corrected if isinstance(corrected, str) and corrected else original,
        explanations=[strip_markdown(v) for v in _strings("explanations")],
        vocab_ids=_strings("vocabIds"),
        grammar_points=[strip_markdown(v) for v in _strings("grammarPoints")],
    )


def parse_extracted_words(text: str | None, level: JLPTLevel) -> list[Word]:
    """Validate each extracted item as a fresh Word; malformed items are dropped."""
    items = parse_json_object(text).get("words")
    if not isinstance(items, list):
        return []
    words = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            words.append(Word.model_validate({
                **item,
                "id": f"diary-word-{uuid.uuid4().hex[:12]}",
                "level": level,
                "familiarity": Familiarity.DONT_KNOW,
                "lastReviewedAt": None,
                "flagged": False,
            }))
        except ValidationError:
            logger.warning("extracted_word_invalid", item=item)
    return words


class DiaryCorrector:
    """Calls the language model for diary corrections and word extraction.

    Args:
        api_key: OpenAI API key.
        model: Chat model to use.
    """

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def _complete(self, system_prompt: str, text: str) -> str | None:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": f"Diary:\n{text}"},
            ],
            temperature=0.3,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content

    async def correct(self, original: str, level: JLPTLevel) -> DiaryCorrection:
        """Correct a diary entry. Any failure returns the original text uncorrected."""
        try:
            content = await self._complete(CORRECTION_SYSTEM_PROMPT.format(level=level), original)
        except Exception:
            logger.exception("diary_correction_failed")
            return DiaryCorrection(corrected=original)
        correction = parse_correction(original, content)
        logger.info("diary_correction_complete", explanations=len(correction.explanations))
        return correction

    async def extract_words(self, text: str, level: JLPTLevel) -> list[Word]:
        """Extract study words from a diary. Any failure returns an empty list."""
        try:
            content = await self._complete(EXTRACTION_SYSTEM_PROMPT.format(level=level), text)
        except Exception:
            logger.exception("word_extraction_failed")
            return []
        words = parse_extracted_words(content, level)
        logger.info("word_extraction_complete", count=len(words))
        return words
