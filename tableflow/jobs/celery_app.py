"""Celery application configuration"""

from celery import Celery
from tableflow.config import settings

# Create Celery app
celery_app = Celery(
    "tableflow",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "tableflow.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "mark-no-shows": {
            "task": "mark_no_shows",
            "schedule": 600.0,  # Every 10 minutes
        },
        "auto-complete-seated": {
            "task": "auto_complete_seated",
            "schedule": 1800.0,  # Every 30 minutes
        },
        "archive-old-reservations": {
            "task": "archive_old_reservations",
            "schedule": 86400.0,  # Daily
        },
    },
)
