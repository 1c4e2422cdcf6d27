from celery import Celery
from celery.schedules import crontab
from envindo.core.config import settings

# Initialize Celery
celery_app = Celery(
    "tasks",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=[
        "envindo.tasks.invoice_tasks",
        "envindo.tasks.document_tasks",
    ]
)

celery_app.conf.update(
    task_track_started=True,
    beat_schedule={
        'sweep-overdue-invoices-daily': {
            'task': 'tasks.sweep_overdue_invoices',
            'schedule': crontab(hour=0, minute=5),  # Runs daily at 00:05
        },
        'refresh-document-statuses-daily': {
            'task': 'tasks.refresh_document_statuses',
            'schedule': crontab(hour=0, minute=15),
        },
    },
)
