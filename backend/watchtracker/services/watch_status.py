"""
Watch status propagation for new content.

When a show gains seasons or a season gains episodes, profiles that had
finished it are moved back to WATCHING. Only WATCHED is ever demoted;
NOT_WATCHED and WATCHING stay as they are, and profiles without a status row
are skipped. Both functions swallow storage errors per profile so a broken
row never fails the sweep that triggered it.
"""
import logging
from typing import Iterable

from watchtracker.schemas import WatchStatus

logger = logging.getLogger(__name__)


async def update_show_watch_status_for_new_content(show_id: int, profile_ids: Iterable[int], repo) -> int:
    """Move profiles that WATCHED `show_id` back to WATCHING. Returns the number of transitions."""
    transitioned = 0
    for profile_id in profile_ids:
        try:
            status = await repo.get_show_watch_status(profile_id, show_id)
            if status == WatchStatus.WATCHED:
                await repo.update_show_watch_status(profile_id, show_id, WatchStatus.WATCHING)
                transitioned += 1
        except Exception as e:
            logger.error(f"Error updating show watch status for new content (profile {profile_id}, show {show_id}): {e}", exc_info=True)
    return transitioned


async def update_season_watch_status_for_new_episodes(season_id: int, profile_ids: Iterable[int], repo) -> int:
    """Move profiles that WATCHED `season_id` back to WATCHING and cascade the same rule to the parent show."""
    transitioned = 0
    for profile_id in profile_ids:
        try:
            status = await repo.get_season_watch_status(profile_id, season_id)
            if status != WatchStatus.WATCHED:
                continue
            await repo.update_season_watch_status(profile_id, season_id, WatchStatus.WATCHING)
            transitioned += 1

            show_id = await repo.get_show_id_for_season(season_id)
            if show_id is None:
                continue
            if await repo.get_show_watch_status(profile_id, show_id) == WatchStatus.WATCHED:
                await repo.update_show_watch_status(profile_id, show_id, WatchStatus.WATCHING)
        except Exception as e:
            logger.error(f"Error updating season watch status for new episodes (profile {profile_id}, season {season_id}): {e}", exc_info=True)
    return transitioned
