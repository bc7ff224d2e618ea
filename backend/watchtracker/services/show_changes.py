"""
show_changes.py

Change check for a single tracked show:

1. Ask TMDB what changed for the show inside the lookback window.
2. Nothing we care about -> done, no writes.
3. Refresh the show row from TMDB details.
4. For every season mentioned by a "season" change: refresh the season, hand
   it to every favoriting profile, and refresh its episodes when the season's
   own change feed reports episode changes.
5. New seasons or new episodes -> propagate WATCHED -> WATCHING.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from watchtracker.core.config import settings
from watchtracker.schemas import Change, TrackedItem
from watchtracker.services.errors import handle_error
from watchtracker.services.watch_status import (
    update_season_watch_status_for_new_episodes,
    update_show_watch_status_for_new_content,
)
from watchtracker.utils.changes import (
    filter_unique_season_ids,
    find_change,
    generate_date_range,
    has_added_items,
    supported_changes,
)
from watchtracker.utils.content import (
    NO_PROVIDER_SHOW,
    get_episode_to_air_id,
    get_genre_ids,
    get_in_production,
    get_us_network,
    get_us_rating,
    get_us_watch_providers,
)

logger = logging.getLogger(__name__)


@dataclass
class SeasonEpisodeChanges:
    has_changes: bool = False
    has_new_episodes: bool = False


def show_fields(details: Dict) -> Dict:
    """Columns of `shows` derived from a TMDB tv details payload."""
    return {
        "title": details.get("name"),
        "description": details.get("overview"),
        "release_date": details.get("first_air_date"),
        "poster_image": details.get("poster_path"),
        "backdrop_image": details.get("backdrop_path"),
        "user_rating": details.get("vote_average"),
        "content_rating": get_us_rating(details.get("content_ratings")),
        "streaming_services": get_us_watch_providers(details, NO_PROVIDER_SHOW),
        "episode_count": details.get("number_of_episodes"),
        "season_count": details.get("number_of_seasons"),
        "genres": get_genre_ids(details),
        "status": details.get("status"),
        "type": details.get("type"),
        "in_production": get_in_production(details),
        "last_air_date": details.get("last_air_date"),
        "last_episode_to_air": get_episode_to_air_id(details.get("last_episode_to_air")),
        "next_episode_to_air": get_episode_to_air_id(details.get("next_episode_to_air")),
        "network": get_us_network(details.get("networks")),
    }


def season_fields(season: Dict) -> Dict:
    return {
        "name": season.get("name"),
        "overview": season.get("overview"),
        "season_number": season.get("season_number"),
        "release_date": season.get("air_date"),
        "poster_image": season.get("poster_path"),
        "number_of_episodes": season.get("episode_count") or 0,
    }


def episode_fields(episode: Dict) -> Dict:
    return {
        "episode_number": episode.get("episode_number"),
        "episode_type": episode.get("episode_type") or "standard",
        "season_number": episode.get("season_number"),
        "title": episode.get("name"),
        "overview": episode.get("overview"),
        "air_date": episode.get("air_date"),
        "runtime": episode.get("runtime") or 0,
        "still_image": episode.get("still_path"),
    }


async def check_season_for_episode_changes(season_id: int, past_date: str, current_date: str, catalog) -> SeasonEpisodeChanges:
    """Episode changes reported for one season. A provider failure reads as "no changes"."""
    try:
        response = await catalog.get_season_changes(season_id, past_date, current_date)
    except Exception as e:
        logger.error(f"Error checking changes for season ID {season_id}: {e}")
        return SeasonEpisodeChanges()
    episode_change = find_change(response.changes, "episode")
    return SeasonEpisodeChanges(
        has_changes=episode_change is not None,
        has_new_episodes=has_added_items(episode_change),
    )


async def process_season_changes(
    season_change: Change,
    show_details: Dict,
    item: TrackedItem,
    profile_ids: List[int],
    past_date: str,
    current_date: str,
    catalog,
    repo,
    limiter,
) -> List[int]:
    """Refresh the seasons referenced by `season_change`.

    Returns the local ids of seasons that gained new episodes.
    """
    seasons_by_id = {season.get("id"): season for season in show_details.get("seasons") or []}
    seasons_with_new_episodes = []

    for tmdb_season_id in filter_unique_season_ids(season_change.items):
        try:
            await limiter.wait()

            season_info = seasons_by_id.get(tmdb_season_id)
            # Season 0 holds specials; they never count as new content
            if not season_info or season_info.get("season_number") == 0:
                continue

            season_id = await repo.update_season(item.id, tmdb_season_id, season_fields(season_info))
            for profile_id in profile_ids:
                await repo.save_season_favorite(profile_id, season_id)

            episode_changes = await check_season_for_episode_changes(tmdb_season_id, past_date, current_date, catalog)
            if not episode_changes.has_changes:
                continue

            logger.info(f"Season {season_info.get('season_number')} of {item.title} has episode changes, updating")
            season_details = await catalog.get_season_details(item.tmdb_id, season_info.get("season_number"))
            for episode in season_details.get("episodes") or []:
                episode_id = await repo.update_episode(item.id, season_id, episode["id"], episode_fields(episode))
                for profile_id in profile_ids:
                    await repo.save_episode_favorite(profile_id, episode_id)

            if episode_changes.has_new_episodes:
                await update_season_watch_status_for_new_episodes(season_id, profile_ids, repo)
                seasons_with_new_episodes.append(season_id)
        except Exception as e:
            logger.error(f"Error processing season ID {tmdb_season_id} for show {item.id}: {e}", exc_info=True)

    return seasons_with_new_episodes


async def check_for_show_changes(item: TrackedItem, catalog, repo, limiter, now: Optional[Callable] = None) -> bool:
    """Check one show for changes and apply them. Returns True when the show was updated.

    Raises a WatchTrackerError when anything outside the per-season loop fails.
    """
    window = generate_date_range(settings.show_lookback_days, now=now)
    try:
        response = await catalog.get_show_changes(item.tmdb_id, window.past_date, window.current_date)
        if not supported_changes(response.changes):
            return False

        logger.info(f"Show has changes, updating: {item.title} (ID {item.id})")
        details = await catalog.get_show_details(item.tmdb_id)
        await repo.update_show(item.id, show_fields(details))
        profile_ids = await repo.get_profiles_for_show(item.id)

        season_change = find_change(response.changes, "season")
        if season_change is None:
            return True

        seasons_with_new_episodes = await process_season_changes(
            season_change, details, item, profile_ids,
            window.past_date, window.current_date, catalog, repo, limiter,
        )
        if has_added_items(season_change) or seasons_with_new_episodes:
            await update_show_watch_status_for_new_content(item.id, profile_ids, repo)
        return True
    except Exception as e:
        logger.error(f"Error checking changes for show ID {item.id} ({item.title}): {e}")
        raise handle_error(e, f"check_for_show_changes({item.id})") from e
