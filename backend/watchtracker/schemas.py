"""
schemas.py

Pydantic schemas for tracked content, TMDB change records and watch status.
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Any
import datetime


class WatchStatus(str, Enum):
    NOT_WATCHED = "NOT_WATCHED"
    WATCHING = "WATCHING"
    WATCHED = "WATCHED"


class TrackedItem(BaseModel):
    """A show or movie that is due for a change check."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    tmdb_id: int
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class DateWindow(BaseModel):
    current_date: str
    past_date: str


# TMDB change payloads
class SeasonRef(BaseModel):
    season_id: int
    season_number: Optional[int] = None


class EpisodeRef(BaseModel):
    episode_id: int
    episode_number: Optional[int] = None


def _coerce_change_value(raw: Any) -> Any:
    """Turn a raw change value into a SeasonRef/EpisodeRef when it has the shape of one.

    Anything else (titles, overviews, image dicts, null) is kept as-is.
    """
    if isinstance(raw, (SeasonRef, EpisodeRef)) or not isinstance(raw, dict):
        return raw
    if isinstance(raw.get("season_id"), int):
        return SeasonRef(season_id=raw["season_id"], season_number=raw.get("season_number"))
    if isinstance(raw.get("episode_id"), int):
        return EpisodeRef(episode_id=raw["episode_id"], episode_number=raw.get("episode_number"))
    return raw


class ChangeItem(BaseModel):
    id: Optional[str] = None
    action: str
    time: Optional[str] = None
    iso_639_1: Optional[str] = None
    iso_3166_1: Optional[str] = None
    value: Any = None
    original_value: Any = None

    @field_validator("value", "original_value", mode="before")
    @classmethod
    def _typed_value(cls, v):
        return _coerce_change_value(v)


class Change(BaseModel):
    key: str
    items: List[ChangeItem] = Field(default_factory=list)


class ChangesResponse(BaseModel):
    changes: List[Change] = Field(default_factory=list)

    @field_validator("changes", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return v or []


class ChangeJobResponse(BaseModel):
    status: str
    message: str
    task_id: Optional[str] = None
