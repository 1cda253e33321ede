"""
Celery application instance and configuration.

Used when ``SYNC_SCHEDULER=celery``: beat dispatches the sync task on the
configured cadence and a worker runs it, instead of the in-process
scheduler inside the API.
"""

from celery import Celery
from celery.schedules import crontab
from clipsync.core.config import settings

# Create Celery application
celery_app = Celery(
    "clipsync",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

# Configure Celery
celery_app.conf.update(
    task_serializer=settings.CELERY_TASK_SERIALIZER,
    result_serializer=settings.CELERY_RESULT_SERIALIZER,
    accept_content=settings.celery_accept_content_list,
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=settings.CELERY_ENABLE_UTC,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    result_expires=3600,  # 1 hour
)

# Celery Beat Schedule (Periodic Tasks)
celery_app.conf.beat_schedule = {
    'sync-on-the-fly-clips': {
        'task': 'clips.sync_on_the_fly_clips',
        'schedule': crontab(minute=f'*/{settings.SYNC_INTERVAL_MINUTES}'),
        'options': {'queue': 'clips'},
    },
}

# Task routing
celery_app.conf.task_routes = {
    'clips.*': {'queue': 'clips'},
}

# Auto-discover tasks from clipsync.tasks
celery_app.autodiscover_tasks(['clipsync.tasks'])
