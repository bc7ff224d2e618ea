import unittest
from datetime import datetime

import httpx

from fakes import FakeCatalog, FakeContentRepository, tracked
from watchtracker.services.errors import NotFoundError
from watchtracker.services.movie_changes import check_for_movie_changes, movie_fields

MOVIE = tracked(3, "Dune: Part Two", tmdb_id=693134)
NOW = lambda: datetime(2024, 3, 5)  # noqa: E731

MOVIE_DETAILS = {
    "id": 693134,
    "title": "Dune: Part Two",
    "overview": "Paul Atreides unites with Chani.",
    "release_date": "2024-02-27",
    "runtime": 167,
    "vote_average": 8.2,
    "genres": [{"id": 878}, {"id": 12}],
    "release_dates": {
        "results": [
            {"iso_3166_1": "GB", "release_dates": [{"certification": "12A"}]},
            {"iso_3166_1": "US", "release_dates": [{"certification": ""}, {"certification": "PG-13"}]},
        ]
    },
    "watch/providers": {"results": {"US": {"flatrate": [{"provider_id": 1899}]}}},
}


class CheckForMovieChangesTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.repo = FakeContentRepository()

    async def test_no_supported_changes_is_a_no_op(self):
        catalog = FakeCatalog(movie_changes={"changes": [{"key": "videos", "items": [{"action": "added"}]}]})

        updated = await check_for_movie_changes(MOVIE, catalog, self.repo, now=NOW)

        self.assertFalse(updated)
        self.assertEqual(self.repo.writes, [])
        self.assertEqual(catalog.calls, [("movie_changes", 693134, "2024-02-24", "2024-03-05")])

    async def test_supported_change_refreshes_the_movie(self):
        catalog = FakeCatalog(
            movie_changes={"changes": [{"key": "title", "items": [{"action": "updated", "value": "Dune: Part Two"}]}]},
            movie_details=MOVIE_DETAILS,
        )

        updated = await check_for_movie_changes(MOVIE, catalog, self.repo, now=NOW)

        self.assertTrue(updated)
        self.assertEqual(self.repo.writes, [("movie", 3)])
        fields = self.repo.updated_movies[3]
        self.assertEqual(fields["mpa_rating"], "PG-13")
        self.assertEqual(fields["streaming_services"], [1899])
        self.assertEqual(fields["genres"], [878, 12])
        self.assertEqual(fields["runtime"], 167)

    async def test_not_found_is_mapped(self):
        class MissingCatalog(FakeCatalog):
            async def get_movie_changes(self, movie_id, start_date, end_date):
                request = httpx.Request("GET", f"https://api.themoviedb.org/3/movie/{movie_id}/changes")
                response = httpx.Response(404, request=request, json={"status_message": "not found"})
                raise httpx.HTTPStatusError("404", request=request, response=response)

        with self.assertRaises(NotFoundError):
            await check_for_movie_changes(MOVIE, MissingCatalog(), self.repo, now=NOW)


def test_movie_fields_defaults_when_tmdb_has_no_us_data():
    fields = movie_fields({"title": "Obscure", "genres": []})
    assert fields["mpa_rating"] == "PG"
    assert fields["streaming_services"] == [9998]
    assert fields["genres"] == []


if __name__ == "__main__":
    unittest.main()
