"""
changes.py

Maintenance endpoints that queue an immediate show or movie change sweep.
"""
from fastapi import APIRouter, HTTPException
import logging

from watchtracker.schemas import ChangeJobResponse
from watchtracker.services.errors import extract_error_message

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/shows", response_model=ChangeJobResponse, status_code=202)
async def queue_show_changes():
    """Queue a change check for every show that is due for updates."""
    try:
        from watchtracker.services.tasks import check_show_changes_task

        task = check_show_changes_task.delay()
        return ChangeJobResponse(status="queued", message="Show change check queued", task_id=task.id)
    except Exception as e:
        logger.exception(f"Failed to queue show change check: {e}")
        raise HTTPException(status_code=500, detail=extract_error_message(e))


@router.post("/movies", response_model=ChangeJobResponse, status_code=202)
async def queue_movie_changes():
    """Queue a change check for every movie that is due for updates."""
    try:
        from watchtracker.services.tasks import check_movie_changes_task

        task = check_movie_changes_task.delay()
        return ChangeJobResponse(status="queued", message="Movie change check queued", task_id=task.id)
    except Exception as e:
        logger.exception(f"Failed to queue movie change check: {e}")
        raise HTTPException(status_code=500, detail=extract_error_message(e))


@router.get("/status")
async def tmdb_quota_status():
    """Current usage of the shared TMDB request quota."""
    from watchtracker.services.rate_limit import AsyncLimiter
    from watchtracker.services.tmdb_client import TMDB_QUOTA_SERVICE

    try:
        return await AsyncLimiter(TMDB_QUOTA_SERVICE).get_status()
    except Exception as e:
        logger.warning(f"Could not read TMDB quota status: {e}")
        raise HTTPException(status_code=503, detail="Quota status unavailable")
