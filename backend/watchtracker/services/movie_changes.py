"""
movie_changes.py

Change check for a single tracked movie. Movies have no seasons or episodes,
so a change only ever refreshes the movie row.
"""
import logging
from typing import Callable, Dict, Optional

from watchtracker.core.config import settings
from watchtracker.schemas import TrackedItem
from watchtracker.services.errors import handle_error
from watchtracker.utils.changes import generate_date_range, supported_changes
from watchtracker.utils.content import NO_PROVIDER_MOVIE, get_genre_ids, get_us_mpa_rating, get_us_watch_providers

logger = logging.getLogger(__name__)


def movie_fields(details: Dict) -> Dict:
    """Columns of `movies` derived from a TMDB movie details payload."""
    return {
        "title": details.get("title"),
        "description": details.get("overview"),
        "release_date": details.get("release_date"),
        "runtime": details.get("runtime"),
        "poster_image": details.get("poster_path"),
        "backdrop_image": details.get("backdrop_path"),
        "user_rating": details.get("vote_average"),
        "mpa_rating": get_us_mpa_rating(details.get("release_dates")),
        "streaming_services": get_us_watch_providers(details, NO_PROVIDER_MOVIE),
        "genres": get_genre_ids(details),
    }


async def check_for_movie_changes(item: TrackedItem, catalog, repo, now: Optional[Callable] = None) -> bool:
    """Check one movie for changes and apply them. Returns True when the movie was updated."""
    window = generate_date_range(settings.movie_lookback_days, now=now)
    try:
        response = await catalog.get_movie_changes(item.tmdb_id, window.past_date, window.current_date)
        if not supported_changes(response.changes):
            return False

        logger.info(f"Movie has changes, updating: {item.title} (ID {item.id})")
        details = await catalog.get_movie_details(item.tmdb_id)
        await repo.update_movie(item.id, movie_fields(details))
        return True
    except Exception as e:
        logger.error(f"Error checking changes for movie ID {item.id} ({item.title}): {e}")
        raise handle_error(e, f"check_for_movie_changes({item.id})") from e
