from celery import Celery

from app.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "inventory",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.import_tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task settings
    task_track_started=True,
    task_time_limit=600,  # large imports
    task_soft_time_limit=540,

    # Worker settings: imports are long, don't reserve extra ones per worker
    worker_prefetch_multiplier=1,

    # Acknowledge on receipt: a lost worker must not re-run a partly applied import
    task_acks_late=False,
)
