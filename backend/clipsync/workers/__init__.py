"""Background workers: the in-process sync scheduler and the Celery app."""
