from watchtracker.services.show_changes import episode_fields, season_fields, show_fields
from watchtracker.utils.content import (
    NO_PROVIDER_SHOW,
    get_episode_to_air_id,
    get_us_network,
    get_us_rating,
    get_us_watch_providers,
)


def test_us_network_prefers_us_origin():
    networks = [{"name": "BBC One", "origin_country": "GB"}, {"name": "HBO", "origin_country": "US"}]
    assert get_us_network(networks) == "HBO"
    assert get_us_network([{"name": "BBC One", "origin_country": "GB"}]) is None
    assert get_us_network(None) is None


def test_us_rating_defaults_to_tv_g():
    assert get_us_rating({"results": [{"iso_3166_1": "DE", "rating": "16"}]}) == "TV-G"
    assert get_us_rating(None) == "TV-G"


def test_watch_providers_fall_back_to_placeholder():
    details = {"watch/providers": {"results": {"US": {"flatrate": [{"provider_id": 8}, {"provider_id": 337}]}}}}
    assert get_us_watch_providers(details, NO_PROVIDER_SHOW) == [8, 337]
    assert get_us_watch_providers({}, NO_PROVIDER_SHOW) == [9999]
    assert get_us_watch_providers({"watch/providers": {"results": {"US": {"rent": []}}}}, NO_PROVIDER_SHOW) == [9999]


def test_episode_to_air_id():
    assert get_episode_to_air_id({"id": 4}) == 4
    assert get_episode_to_air_id(None) is None


def test_show_fields_tolerate_sparse_details():
    fields = show_fields({"name": "Sparse"})
    assert fields["title"] == "Sparse"
    assert fields["in_production"] is False
    assert fields["genres"] == []
    assert fields["network"] is None


def test_season_and_episode_defaults():
    assert season_fields({"season_number": 2})["number_of_episodes"] == 0
    episode = episode_fields({"episode_number": 1, "season_number": 2, "episode_type": None})
    assert episode["episode_type"] == "standard"
    assert episode["runtime"] == 0
