"""
batch.py

Sweeps over every tracked show or movie that is due for a change check.

Items are checked one at a time, paced by a shared IntervalRateLimiter. A
failing item is logged and skipped; only a failure to load the candidate list
aborts the sweep (and is re-raised for the job scheduler).
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from watchtracker.core.config import settings
from watchtracker.schemas import TrackedItem
from watchtracker.services.movie_changes import check_for_movie_changes
from watchtracker.services.rate_limit import IntervalRateLimiter
from watchtracker.services.show_changes import check_for_show_changes

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    kind: str
    total: int = 0
    updated: int = 0
    failed_ids: List[int] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)


async def run_batch(
    kind: str,
    fetch_items: Callable[[], Awaitable[List[TrackedItem]]],
    check_item: Callable[[TrackedItem], Awaitable[Optional[bool]]],
    limiter: IntervalRateLimiter,
) -> BatchResult:
    started = time.perf_counter()
    try:
        items = await fetch_items()
    except Exception as e:
        logger.error(f"Unexpected error while checking for {kind} updates: {e}", exc_info=True)
        raise

    logger.info(f"Found {len(items)} {kind} to check for updates")
    result = BatchResult(kind=kind, total=len(items))

    for item in items:
        try:
            await limiter.wait()
            if await check_item(item):
                result.updated += 1
        except Exception as e:
            result.failed_ids.append(item.id)
            logger.error(f"Failed to check for changes in {kind} ID {item.id}: {e}")

    logger.info(
        f"Finished checking {kind}: {result.updated} updated, {result.failed} failed "
        f"of {result.total} in {time.perf_counter() - started:.1f}s"
    )
    return result


def default_limiter() -> IntervalRateLimiter:
    return IntervalRateLimiter.from_milliseconds(settings.change_request_interval_ms)


async def update_shows(catalog=None, repo=None, limiter: Optional[IntervalRateLimiter] = None) -> BatchResult:
    """Check every show due for updates."""
    if repo is None:
        from watchtracker.core.database import AsyncSessionLocal
        from watchtracker.services.repository import ContentRepository

        async with AsyncSessionLocal() as session:
            return await update_shows(catalog, ContentRepository(session), limiter)

    if catalog is None:
        from watchtracker.services.tmdb_client import TMDBClient
        catalog = TMDBClient()
    limiter = limiter or default_limiter()

    async def check(item: TrackedItem):
        return await check_for_show_changes(item, catalog, repo, limiter)

    return await run_batch("shows", repo.get_shows_for_updates, check, limiter)


async def update_movies(catalog=None, repo=None, limiter: Optional[IntervalRateLimiter] = None) -> BatchResult:
    """Check every movie due for updates."""
    if repo is None:
        from watchtracker.core.database import AsyncSessionLocal
        from watchtracker.services.repository import ContentRepository

        async with AsyncSessionLocal() as session:
            return await update_movies(catalog, ContentRepository(session), limiter)

    if catalog is None:
        from watchtracker.services.tmdb_client import TMDBClient
        catalog = TMDBClient()
    limiter = limiter or default_limiter()

    async def check(item: TrackedItem):
        return await check_for_movie_changes(item, catalog, repo)

    async def fetch():
        return await repo.get_movies_for_updates(settings.movie_update_window_days)

    return await run_batch("movies", fetch, check, limiter)
