"""Celery application configuration.

Uses Redis as broker when configured, falls back to memory:// for local dev/tests.
"""

from celery import Celery

from backend.config.settings import get_settings

settings = get_settings()

app = Celery("carwatch")

app.conf.update(
    broker_url=settings.effective_celery_broker,
    result_backend=settings.effective_celery_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "run-alert-scheduler-tick": {
            "task": "backend.tasks.alert_tasks.run_alert_tick",
            "schedule": float(settings.alert_tick_seconds),
            "options": {"expires": float(settings.alert_tick_seconds)},  # drop stale ticks
        },
    },
)

app.autodiscover_tasks(["backend.tasks"])
