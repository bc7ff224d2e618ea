"""
Extraction helpers for TMDB detail payloads (US ratings, networks, providers).
"""
from typing import Dict, List, Optional

NO_PROVIDER_SHOW = 9999
NO_PROVIDER_MOVIE = 9998


def get_us_network(networks: Optional[List[Dict]]) -> Optional[str]:
    for network in networks or []:
        if network.get("origin_country") == "US":
            return network.get("name")
    return None


def get_us_rating(content_ratings: Optional[Dict]) -> str:
    for result in (content_ratings or {}).get("results", []):
        if result.get("iso_3166_1") == "US":
            return result.get("rating")
    return "TV-G"


def get_us_mpa_rating(release_dates: Optional[Dict]) -> str:
    """First non-empty US certification, PG when TMDB has none."""
    for result in (release_dates or {}).get("results", []):
        if result.get("iso_3166_1") != "US":
            continue
        for release in result.get("release_dates", []):
            if release.get("certification"):
                return release["certification"]
    return "PG"


def get_in_production(show: Dict) -> bool:
    return bool(show.get("in_production"))


def get_episode_to_air_id(episode: Optional[Dict]) -> Optional[int]:
    if episode:
        return episode.get("id")
    return None


def get_genre_ids(details: Dict) -> List[int]:
    return [genre["id"] for genre in details.get("genres") or [] if "id" in genre]


def get_us_watch_providers(details: Dict, default_provider: int) -> List[int]:
    """Flat-rate US streaming provider ids, or [default_provider] when there are none."""
    results = (details.get("watch/providers") or {}).get("results") or {}
    us_providers = results.get("US") or {}
    flatrate = us_providers.get("flatrate") or []
    provider_ids = [item["provider_id"] for item in flatrate if "provider_id" in item]
    return provider_ids or [default_provider]
