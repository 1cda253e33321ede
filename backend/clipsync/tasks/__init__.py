"""
Celery tasks for background processing.
"""

from clipsync.tasks.clip_tasks import sync_on_the_fly_clips

__all__ = [
    "sync_on_the_fly_clips",
]
