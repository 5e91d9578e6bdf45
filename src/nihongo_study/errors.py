"""Error types raised by the study engine."""


class StudyError(Exception):
    """Base class for study engine errors."""


class WordNotFoundError(StudyError, LookupError):
    """A word id is not present in the vocabulary repository."""

    def __init__(self, word_id: str):
        super().__init__(f"Word not found: {word_id}")
        self.word_id = word_id


class InvalidInputError(StudyError, ValueError):
    """Input rejected before it could reach the core state."""


class PersistenceError(StudyError):
    """A key could not be loaded from or saved to the store."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Persistence failed for '{key}': {reason}")
        self.key = key
