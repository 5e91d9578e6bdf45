"""Shared pydantic base for persisted models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model stored with camelCase keys, matching the persisted app layout."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def to_local_naive(value: datetime | None) -> datetime | None:
    """Convert aware timestamps (e.g. ``...Z`` strings) to naive local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
