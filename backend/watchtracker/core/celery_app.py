from celery import Celery
from watchtracker.core.config import settings
from watchtracker.services.scheduler import REDBEAT_SCHEDULER, CeleryBeatTrigger
from watchtracker.utils import logger as _logging_setup  # noqa: F401  configures the watchtracker logger

celery_app = Celery(
    "watchtracker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["watchtracker.services.tasks"]
)

celery_app.conf.update(
    result_expires=3600,
    task_acks_late=True,
    worker_prefetch_multiplier=1,    # Process one task at a time
    task_compression='gzip',
    result_compression='gzip',

    broker_connection_retry_on_startup=True,
    broker_pool_limit=10,

    # RedBeat scheduler configuration
    beat_scheduler=REDBEAT_SCHEDULER,
    redbeat_redis_url=settings.redis_url,
    redbeat_key_prefix='celery:beat:',

    # Change sweeps are long, sequential and paced; keep them off the default queue
    task_routes={
        'watchtracker.services.tasks.run_scheduled_job': {'queue': 'changes'},
        'watchtracker.services.tasks.check_show_changes_task': {'queue': 'changes'},
        'watchtracker.services.tasks.check_movie_changes_task': {'queue': 'changes'},
    },

    timezone=settings.timezone,
)

# Periodic change sweeps are registered on this trigger by setup_change_jobs below.
beat_trigger = CeleryBeatTrigger(celery_app)


@celery_app.on_after_configure.connect
def setup_change_jobs(sender, **kwargs):
    """Register the show/movie change sweeps in every process (beat and workers)."""
    from watchtracker.services.notifications import notify_movie_updates, notify_show_updates
    from watchtracker.services.scheduler import init_scheduled_jobs

    sender.change_scheduler = init_scheduled_jobs(
        notify_show_updates,
        notify_movie_updates,
        trigger=beat_trigger,
    )
