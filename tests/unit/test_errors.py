import httpx
import pytest
from sqlalchemy.exc import OperationalError

from watchtracker.services.errors import (
    ChangeCheckError,
    DatabaseError,
    NotFoundError,
    TMDBAPIError,
    extract_error_message,
    handle_error,
)


def status_error(status, **response_kwargs):
    request = httpx.Request("GET", "https://api.themoviedb.org/3/tv/1/changes")
    response = httpx.Response(status, request=request, **response_kwargs)
    return httpx.HTTPStatusError(str(status), request=request, response=response)


@pytest.mark.parametrize("status, expected", [
    (429, TMDBAPIError),
    (404, NotFoundError),
    (401, TMDBAPIError),
    (503, TMDBAPIError),
])
def test_http_status_errors_are_mapped(status, expected):
    error = status_error(status)
    mapped = handle_error(error, "check_for_show_changes(1)")
    assert type(mapped) is expected
    assert mapped.original_error is error


def test_rate_limit_message():
    assert "rate limit" in handle_error(status_error(429), "ctx").message


def test_other_client_errors_use_tmdb_status_message():
    mapped = handle_error(status_error(422, json={"status_message": "Invalid date range"}), "ctx")
    assert mapped.message == "External API error: Invalid date range"
    assert mapped.status_code == 502


def test_network_errors():
    mapped = handle_error(httpx.ConnectTimeout("timed out"), "ctx")
    assert isinstance(mapped, TMDBAPIError)
    assert mapped.message.startswith("Network error")


def test_database_errors():
    mapped = handle_error(OperationalError("SELECT 1", {}, Exception("gone")), "update_show")
    assert isinstance(mapped, DatabaseError)
    assert "update_show" in mapped.message


def test_unknown_errors_become_change_check_errors():
    mapped = handle_error(KeyError("seasons"), "check_for_show_changes(9)")
    assert isinstance(mapped, ChangeCheckError)
    assert "check_for_show_changes(9)" in mapped.message


def test_already_mapped_errors_pass_through():
    error = NotFoundError("gone")
    assert handle_error(error, "ctx") is error


def test_extract_error_message():
    assert extract_error_message(TMDBAPIError("quota")) == "quota"
    assert extract_error_message(ValueError("bad value")) == "bad value"
    assert extract_error_message(RuntimeError()) == "RuntimeError"
