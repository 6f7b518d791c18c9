"""
Celery application configuration for AutoShorts background runs.

The worker runs one pipeline at a time; beat fires the autopilot tick
every minute.
"""
from celery import Celery
from celery.signals import task_failure, task_success

from autoshorts.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "autoshorts",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["autoshorts.tasks.pipeline_tasks"]
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # One pipeline at a time per worker
    worker_concurrency=1,
    worker_prefetch_multiplier=1,

    # Task result settings
    result_expires=3600,

    # Task tracking
    task_track_started=True,
    task_send_sent_event=True,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    beat_schedule={
        "autopilot-tick": {
            "task": "autopilot_tick",
            "schedule": 60.0,
        },
    },
)


@task_success.connect
def on_task_success(sender=None, result=None, **kwargs):
    """Handle successful task completion."""
    from autoshorts.core.logging import get_logger
    logger = get_logger("celery.signals")

    if result and isinstance(result, dict) and "success" in result:
        logger.info(
            f"Task completed: success={result.get('success')}, "
            f"upload={result.get('upload_id')}, failed_stage={result.get('failed_stage')}"
        )


@task_failure.connect
def on_task_failure(sender=None, task_id=None, exception=None, **kwargs):
    """Handle task failure."""
    from autoshorts.core.logging import get_logger
    logger = get_logger("celery.signals")
    logger.error(f"Task {task_id} failed: {exception}")


if __name__ == "__main__":
    celery_app.start()
