"""Bundled starter vocabulary used on first launch and after a reset."""

import json
from pathlib import Path

from nihongo_study.models.word import Word

SEED_PATH = Path(__file__).parent.parent / "data" / "words_n3.json"


def load_seed_words(path: Path = SEED_PATH) -> list[Word]:
    """Load seed words with fresh review state."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return [
        Word.model_validate({**item, "lastReviewedAt": None, "flagged": False})
        for item in data
    ]
