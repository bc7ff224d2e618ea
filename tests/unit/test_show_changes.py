import unittest
from datetime import datetime
from unittest.mock import patch

import httpx

from fakes import FakeCatalog, FakeContentRepository, FakeLimiter, tracked
from watchtracker.schemas import WatchStatus
from watchtracker.services.errors import ChangeCheckError, TMDBAPIError
from watchtracker.services.show_changes import check_for_show_changes, check_season_for_episode_changes

SHOW = tracked(7, "The Expanse", tmdb_id=63639)
NOW = lambda: datetime(2023, 1, 1, 9, 0)  # noqa: E731

SHOW_DETAILS = {
    "id": 63639,
    "name": "The Expanse",
    "overview": "Space.",
    "first_air_date": "2015-12-14",
    "number_of_seasons": 3,
    "number_of_episodes": 30,
    "genres": [{"id": 10765, "name": "Sci-Fi & Fantasy"}],
    "status": "Returning Series",
    "in_production": True,
    "content_ratings": {"results": [{"iso_3166_1": "US", "rating": "TV-14"}]},
    "networks": [{"name": "Syfy", "origin_country": "US"}],
    "last_episode_to_air": {"id": 900},
    "next_episode_to_air": None,
    "seasons": [
        {"id": 500, "season_number": 0, "name": "Specials", "episode_count": 2},
        {"id": 501, "season_number": 2, "name": "Season 2", "episode_count": 13},
        {"id": 502, "season_number": 3, "name": "Season 3", "episode_count": 2},
    ],
}

SEASON_3_DETAILS = {
    "episodes": [
        {"id": 9001, "episode_number": 1, "season_number": 3, "name": "Fight or Flight"},
        {"id": 9002, "episode_number": 2, "season_number": 3, "name": "IFF", "runtime": 45},
    ]
}


def change(key, *items):
    return {"key": key, "items": list(items)}


def season_item(action, season_id, season_number):
    return {"id": f"s{season_id}", "action": action, "value": {"season_id": season_id, "season_number": season_number}}


def episode_changes(action):
    return {"changes": [change("episode", {"id": "e1", "action": action, "value": {"episode_id": 9002, "episode_number": 2}})]}


class CheckForShowChangesTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.repo = FakeContentRepository()
        self.repo.show_profiles[SHOW.id] = [1, 2]
        self.repo.show_status = {(1, SHOW.id): WatchStatus.WATCHED, (2, SHOW.id): WatchStatus.NOT_WATCHED}
        self.limiter = FakeLimiter()

    async def check(self, catalog):
        return await check_for_show_changes(SHOW, catalog, self.repo, self.limiter, now=NOW)

    async def test_no_changes_means_no_writes(self):
        catalog = FakeCatalog()

        updated = await self.check(catalog)

        self.assertFalse(updated)
        self.assertEqual(self.repo.writes, [])
        self.assertEqual(catalog.calls, [("show_changes", 63639, "2022-12-30", "2023-01-01")])

    async def test_unsupported_changes_are_ignored(self):
        catalog = FakeCatalog(show_changes={"changes": [change("videos", {"action": "added", "value": {"key": "x"}})]})

        self.assertFalse(await self.check(catalog))
        self.assertEqual(self.repo.writes, [])

    async def test_metadata_only_change_updates_without_propagation(self):
        catalog = FakeCatalog(
            show_changes={"changes": [change("overview", {"action": "updated", "value": "New synopsis"})]},
            show_details=SHOW_DETAILS,
        )

        updated = await self.check(catalog)

        self.assertTrue(updated)
        fields = self.repo.updated_shows[SHOW.id]
        self.assertEqual(fields["title"], "The Expanse")
        self.assertEqual(fields["content_rating"], "TV-14")
        self.assertEqual(fields["network"], "Syfy")
        self.assertEqual(fields["genres"], [10765])
        self.assertEqual(fields["last_episode_to_air"], 900)
        self.assertEqual(self.repo.show_status[(1, SHOW.id)], WatchStatus.WATCHED)
        self.assertFalse(any(w[0] == "show_status" for w in self.repo.writes))

    async def test_new_season_refreshes_content_and_propagates(self):
        catalog = FakeCatalog(
            show_changes={"changes": [change("season", season_item("added", 502, 3))]},
            show_details=SHOW_DETAILS,
            season_changes={502: episode_changes("added")},
            season_details={3: SEASON_3_DETAILS},
        )

        updated = await self.check(catalog)

        self.assertTrue(updated)
        season_id = self.repo.seasons[502]
        self.assertEqual(self.repo.season_show[season_id], SHOW.id)
        self.assertEqual(self.repo.season_status[(1, season_id)], WatchStatus.NOT_WATCHED)
        self.assertEqual(self.repo.season_status[(2, season_id)], WatchStatus.NOT_WATCHED)
        self.assertEqual(set(self.repo.episodes), {9001, 9002})
        self.assertEqual(len(self.repo.episode_favorites), 4)
        self.assertEqual(self.repo.show_status[(1, SHOW.id)], WatchStatus.WATCHING)
        self.assertEqual(self.repo.show_status[(2, SHOW.id)], WatchStatus.NOT_WATCHED)
        self.assertEqual(self.limiter.waits, 1)

    async def test_new_episodes_in_watched_season_cascade(self):
        self.repo.seasons[501] = 42
        self.repo.season_status[(1, 42)] = WatchStatus.WATCHED
        catalog = FakeCatalog(
            show_changes={"changes": [change("season", season_item("updated", 501, 2))]},
            show_details=SHOW_DETAILS,
            season_changes={501: episode_changes("added")},
            season_details={2: SEASON_3_DETAILS},
        )

        await self.check(catalog)

        self.assertEqual(self.repo.season_status[(1, 42)], WatchStatus.WATCHING)
        self.assertEqual(self.repo.show_status[(1, SHOW.id)], WatchStatus.WATCHING)

    async def test_updated_episodes_do_not_propagate(self):
        catalog = FakeCatalog(
            show_changes={"changes": [change("season", season_item("updated", 501, 2))]},
            show_details=SHOW_DETAILS,
            season_changes={501: episode_changes("updated")},
            season_details={2: SEASON_3_DETAILS},
        )

        await self.check(catalog)

        self.assertEqual(set(self.repo.episodes), {9001, 9002})
        self.assertEqual(self.repo.show_status[(1, SHOW.id)], WatchStatus.WATCHED)

    async def test_specials_and_unknown_seasons_are_skipped(self):
        catalog = FakeCatalog(
            show_changes={"changes": [change("season", season_item("added", 500, 0), season_item("added", 999, 9))]},
            show_details=SHOW_DETAILS,
        )

        await self.check(catalog)

        self.assertEqual(self.repo.seasons, {})
        self.assertNotIn(("season_changes", 500), catalog.calls)

    async def test_season_provider_failure_reads_as_no_episode_changes(self):
        catalog = FakeCatalog(
            show_changes={"changes": [change("season", season_item("updated", 501, 2))]},
            show_details=SHOW_DETAILS,
            season_changes={501: RuntimeError("TMDB down")},
        )

        self.assertTrue(await self.check(catalog))
        self.assertIn(501, self.repo.seasons)
        self.assertEqual(self.repo.episodes, {})

    async def test_transport_error_is_raised_as_tmdb_error(self):
        class BrokenCatalog(FakeCatalog):
            async def get_show_changes(self, show_id, start_date, end_date):
                raise httpx.ConnectError("connection refused")

        with patch("watchtracker.services.show_changes.logger") as logger:
            with self.assertRaises(TMDBAPIError):
                await self.check(BrokenCatalog())

        logger.error.assert_called_once()
        self.assertIn("show ID 7", logger.error.call_args[0][0])

    async def test_storage_error_is_raised_as_change_check_error(self):
        class BrokenRepo(FakeContentRepository):
            async def update_show(self, show_id, fields):
                raise RuntimeError("disk full")

        catalog = FakeCatalog(
            show_changes={"changes": [change("name", {"action": "updated", "value": "New"})]},
            show_details=SHOW_DETAILS,
        )
        with self.assertRaises(ChangeCheckError):
            await check_for_show_changes(SHOW, catalog, BrokenRepo(), self.limiter, now=NOW)


class CheckSeasonForEpisodeChangesTest(unittest.IsolatedAsyncioTestCase):
    async def test_reports_new_episodes(self):
        catalog = FakeCatalog(season_changes={501: episode_changes("added")})

        result = await check_season_for_episode_changes(501, "2022-12-30", "2023-01-01", catalog)

        self.assertTrue(result.has_changes)
        self.assertTrue(result.has_new_episodes)

    async def test_non_episode_changes_are_not_episode_changes(self):
        catalog = FakeCatalog(season_changes={501: {"changes": [change("name", {"action": "updated", "value": "S2"})]}})

        result = await check_season_for_episode_changes(501, "2022-12-30", "2023-01-01", catalog)

        self.assertFalse(result.has_changes)
        self.assertFalse(result.has_new_episodes)


if __name__ == "__main__":
    unittest.main()
