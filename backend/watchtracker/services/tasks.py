"""
tasks.py

Celery tasks for the change sweeps. Each task runs its coroutine to completion
in a fresh event loop. Redis clients and pooled database connections are bound
to that loop, so both are released before it closes.
"""
import asyncio
import inspect
import logging
from dataclasses import asdict

from celery import shared_task

from watchtracker.core.database import dispose_engine
from watchtracker.core.redis_client import close_redis

logger = logging.getLogger(__name__)


def _run_async(factory):
    async def _runner():
        try:
            result = factory()
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            try:
                await close_redis()
            finally:
                await dispose_engine()
    return asyncio.run(_runner())


@shared_task(name="watchtracker.services.tasks.run_scheduled_job")
def run_scheduled_job(job_name: str):
    """Entry point for beat: run the callback registered under `job_name`."""
    from watchtracker.core.celery_app import beat_trigger

    callback = beat_trigger.callback_for(job_name)
    logger.info(f"Scheduled job {job_name} fired")
    return _run_async(callback)


@shared_task(bind=True, name="watchtracker.services.tasks.check_show_changes_task")
def check_show_changes_task(self):
    """Run a show change sweep on demand."""
    from watchtracker.services.batch import update_shows

    result = _run_async(update_shows)
    return asdict(result)


@shared_task(bind=True, name="watchtracker.services.tasks.check_movie_changes_task")
def check_movie_changes_task(self):
    """Run a movie change sweep on demand."""
    from watchtracker.services.batch import update_movies

    result = _run_async(update_movies)
    return asdict(result)
