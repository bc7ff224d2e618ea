"""
repository.py

Async SQLAlchemy access for the change sweeps: candidate selection, metadata
refresh for shows/seasons/episodes/movies, and per-profile watch status.

Every write commits immediately; the sweeps have no multi-statement
transactions to protect.
"""
import json
import logging
from datetime import date, timedelta
from functools import wraps
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from watchtracker.models import (
    Episode,
    EpisodeWatchStatus,
    Movie,
    MovieWatchStatus,
    Season,
    SeasonWatchStatus,
    Show,
    ShowWatchStatus,
)
from watchtracker.schemas import TrackedItem, WatchStatus
from watchtracker.services.errors import DatabaseError

logger = logging.getLogger(__name__)

FINISHED_SHOW_STATUSES = ("Canceled", "Ended")
JSON_COLUMNS = ("streaming_services", "genres")


def _db_operation(description: str):
    """Roll back and re-raise SQLAlchemy failures as DatabaseError."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            try:
                return await func(self, *args, **kwargs)
            except SQLAlchemyError as e:
                await self.session.rollback()
                raise DatabaseError(f"Database error {description}: {e}", e) from e
        return wrapper
    return decorator


def _encode(fields: Dict[str, Any]) -> Dict[str, Any]:
    encoded = dict(fields)
    for column in JSON_COLUMNS:
        if column in encoded and not isinstance(encoded[column], str):
            encoded[column] = json.dumps(encoded[column])
    return encoded


class ContentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # -- candidates -------------------------------------------------------

    @_db_operation("getting shows for updates")
    async def get_shows_for_updates(self) -> List[TrackedItem]:
        """Shows still in production that have not ended or been canceled."""
        stmt = (
            select(Show)
            .where(Show.in_production.is_(True))
            .where(Show.status.notin_(FINISHED_SHOW_STATUSES))
            .order_by(Show.id)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [TrackedItem.model_validate(row) for row in rows]

    @_db_operation("getting movies for updates")
    async def get_movies_for_updates(self, window_days: int = 180, today: Optional[date] = None) -> List[TrackedItem]:
        """Movies released within the last `window_days` days, or not released yet."""
        cutoff = ((today or date.today()) - timedelta(days=window_days)).isoformat()
        stmt = select(Movie).where(Movie.release_date >= cutoff).order_by(Movie.id)
        rows = (await self.session.execute(stmt)).scalars().all()
        return [TrackedItem.model_validate(row) for row in rows]

    # -- favorites --------------------------------------------------------

    @_db_operation("getting the profiles for a show")
    async def get_profiles_for_show(self, show_id: int) -> List[int]:
        stmt = select(ShowWatchStatus.profile_id).where(ShowWatchStatus.show_id == show_id)
        return list((await self.session.execute(stmt)).scalars().all())

    @_db_operation("getting the profiles for a movie")
    async def get_profiles_for_movie(self, movie_id: int) -> List[int]:
        stmt = select(MovieWatchStatus.profile_id).where(MovieWatchStatus.movie_id == movie_id)
        return list((await self.session.execute(stmt)).scalars().all())

    async def _save_favorite(self, model: Type, content_column: str, profile_id: int, content_id: int) -> bool:
        stmt = select(model.id).where(model.profile_id == profile_id, getattr(model, content_column) == content_id)
        if (await self.session.execute(stmt)).first() is not None:
            return False
        self.session.add(model(profile_id=profile_id, status=WatchStatus.NOT_WATCHED.value, **{content_column: content_id}))
        await self.session.commit()
        return True

    @_db_operation("saving a season favorite")
    async def save_season_favorite(self, profile_id: int, season_id: int) -> bool:
        return await self._save_favorite(SeasonWatchStatus, "season_id", profile_id, season_id)

    @_db_operation("saving an episode favorite")
    async def save_episode_favorite(self, profile_id: int, episode_id: int) -> bool:
        return await self._save_favorite(EpisodeWatchStatus, "episode_id", profile_id, episode_id)

    # -- watch status -----------------------------------------------------

    async def _get_status(self, model: Type, content_column: str, profile_id: int, content_id: int) -> Optional[WatchStatus]:
        stmt = select(model.status).where(model.profile_id == profile_id, getattr(model, content_column) == content_id)
        status = (await self.session.execute(stmt)).scalar_one_or_none()
        return WatchStatus(status) if status is not None else None

    async def _set_status(self, model: Type, content_column: str, profile_id: int, content_id: int, status: WatchStatus) -> bool:
        stmt = (
            update(model)
            .where(model.profile_id == profile_id, getattr(model, content_column) == content_id)
            .values(status=WatchStatus(status).value)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount > 0

    @_db_operation("getting the watch status for a show")
    async def get_show_watch_status(self, profile_id: int, show_id: int) -> Optional[WatchStatus]:
        return await self._get_status(ShowWatchStatus, "show_id", profile_id, show_id)

    @_db_operation("updating the watch status of a show")
    async def update_show_watch_status(self, profile_id: int, show_id: int, status: WatchStatus) -> bool:
        return await self._set_status(ShowWatchStatus, "show_id", profile_id, show_id, status)

    @_db_operation("getting the watch status for a season")
    async def get_season_watch_status(self, profile_id: int, season_id: int) -> Optional[WatchStatus]:
        return await self._get_status(SeasonWatchStatus, "season_id", profile_id, season_id)

    @_db_operation("updating the watch status of a season")
    async def update_season_watch_status(self, profile_id: int, season_id: int, status: WatchStatus) -> bool:
        return await self._set_status(SeasonWatchStatus, "season_id", profile_id, season_id, status)

    @_db_operation("getting the show id for a season")
    async def get_show_id_for_season(self, season_id: int) -> Optional[int]:
        stmt = select(Season.show_id).where(Season.id == season_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()

    # -- metadata ---------------------------------------------------------

    async def _upsert(self, model: Type, tmdb_id: int, fields: Dict[str, Any]) -> int:
        """Insert or update the row identified by tmdb_id; returns the local id."""
        existing = (await self.session.execute(select(model).where(model.tmdb_id == tmdb_id))).scalar_one_or_none()
        if existing is None:
            existing = model(tmdb_id=tmdb_id, **fields)
            self.session.add(existing)
        else:
            for name, value in fields.items():
                setattr(existing, name, value)
        await self.session.flush()
        row_id = existing.id
        await self.session.commit()
        return row_id

    @_db_operation("updating a show")
    async def update_show(self, show_id: int, fields: Dict[str, Any]) -> bool:
        result = await self.session.execute(update(Show).where(Show.id == show_id).values(**_encode(fields)))
        await self.session.commit()
        return result.rowcount > 0

    @_db_operation("updating a movie")
    async def update_movie(self, movie_id: int, fields: Dict[str, Any]) -> bool:
        result = await self.session.execute(update(Movie).where(Movie.id == movie_id).values(**_encode(fields)))
        await self.session.commit()
        return result.rowcount > 0

    @_db_operation("updating a season")
    async def update_season(self, show_id: int, tmdb_id: int, fields: Dict[str, Any]) -> int:
        return await self._upsert(Season, tmdb_id, {"show_id": show_id, **fields})

    @_db_operation("updating an episode")
    async def update_episode(self, show_id: int, season_id: int, tmdb_id: int, fields: Dict[str, Any]) -> int:
        return await self._upsert(Episode, tmdb_id, {"show_id": show_id, "season_id": season_id, **fields})
