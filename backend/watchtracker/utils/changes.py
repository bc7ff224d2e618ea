"""
Helpers for working with TMDB change feeds: the date window that bounds a
changes query and filtering of change records.
"""
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from watchtracker.schemas import Change, ChangeItem, DateWindow, SeasonRef

# Change keys that warrant refreshing our copy of the content
SUPPORTED_CHANGE_KEYS = frozenset({
    "air_date",
    "episode",
    "episode_number",
    "episode_run_time",
    "general",
    "genres",
    "images",
    "name",
    "network",
    "overview",
    "runtime",
    "season",
    "season_number",
    "status",
    "title",
    "type",
})

DATE_FORMAT = "%Y-%m-%d"


def generate_date_range(lookback_days: int, now: Optional[Callable[[], datetime]] = None) -> DateWindow:
    """Build the [past_date, current_date] window for a changes query.

    Args:
        lookback_days: how many days before today the window starts
        now: time source, defaults to the local wall clock
    """
    today = (now or datetime.now)().date()
    past = today - timedelta(days=lookback_days)
    return DateWindow(current_date=today.strftime(DATE_FORMAT), past_date=past.strftime(DATE_FORMAT))


def filter_unique_season_ids(changes: Iterable[ChangeItem]) -> List[int]:
    """Season ids referenced by `value` of the given change items, first-seen order, no duplicates."""
    seen = set()
    season_ids = []
    for change in changes:
        if not isinstance(change.value, SeasonRef):
            continue
        season_id = change.value.season_id
        if season_id not in seen:
            seen.add(season_id)
            season_ids.append(season_id)
    return season_ids


def supported_changes(changes: Iterable[Change]) -> List[Change]:
    return [change for change in changes if change.key in SUPPORTED_CHANGE_KEYS]


def find_change(changes: Iterable[Change], key: str) -> Optional[Change]:
    """First change category with the given key, if any."""
    for change in changes:
        if change.key == key:
            return change
    return None


def has_added_items(change: Optional[Change]) -> bool:
    return change is not None and any(item.action == "added" for item in change.items)
