"""
errors.py

Exception hierarchy for change checks and a single place that turns
transport/storage exceptions into it.
"""
import logging
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class WatchTrackerError(Exception):
    status_code = 500

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NotFoundError(WatchTrackerError):
    status_code = 404


class DatabaseError(WatchTrackerError):
    status_code = 500


class TMDBAPIError(WatchTrackerError):
    status_code = 502


class ChangeCheckError(WatchTrackerError):
    """A single item's change check failed; the batch carries on."""


def _tmdb_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(data, dict):
        return data.get("status_message") or data.get("message") or response.reason_phrase
    return response.reason_phrase


def handle_error(error: BaseException, context: str) -> WatchTrackerError:
    """Map any exception raised during `context` onto the WatchTrackerError hierarchy."""
    if isinstance(error, WatchTrackerError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 429:
            return TMDBAPIError("External API rate limit reached. Please try again later.", error)
        if status == 404:
            return NotFoundError(f"Resource not found in external API: {context}", error)
        if status in (401, 403):
            return TMDBAPIError(f"Authentication error with external API: {error.response.reason_phrase}", error)
        if status >= 500:
            return TMDBAPIError(f"External API server error: {error.response.reason_phrase}", error)
        return TMDBAPIError(f"External API error: {_tmdb_message(error.response)}", error)

    if isinstance(error, httpx.RequestError):
        return TMDBAPIError("Network error: Unable to reach external API", error)

    if isinstance(error, SQLAlchemyError):
        return DatabaseError(f"Database error in {context}: {error}", error)

    return ChangeCheckError(f"Error in {context}: {error}", error)


def extract_error_message(e: BaseException) -> str:
    if isinstance(e, WatchTrackerError):
        return e.message
    if e.args:
        return str(e.args[0])
    return type(e).__name__
