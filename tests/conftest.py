"""Shared fixtures for study engine tests."""

import pytest
from helpers import NOW, make_word

from nihongo_study.clock import FixedClock
from nihongo_study.models.word import Word


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def seed_words() -> list[Word]:
    return [make_word(f"w{i}") for i in range(15)]
