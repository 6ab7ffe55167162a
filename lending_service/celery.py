import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "lending_service.settings")

app = Celery("lending_service")

# Workers read every CELERY_* setting from Django settings.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    result_expires=3600 * 24 * 7,  # 1 week
)

app.conf.beat_schedule = {
    "check-overdue-borrowings-daily": {
        "task": "notifications.tasks.check_overdue_borrowings",
        "schedule": crontab(hour=9, minute=0),
    },
}
