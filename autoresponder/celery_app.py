from celery import Celery
from dotenv import load_dotenv
from autoresponder.config import settings

# Load .env file
load_dotenv()

celery_app = Celery(
    "review_autoresponder",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "autoresponder.tasks.review_tasks",
        "autoresponder.tasks.maintenance_tasks",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Three providers at 30s each plus storefront calls
    task_time_limit=180,
    task_soft_time_limit=150,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,
    task_acks_late=True,
    worker_disable_rate_limits=False,
)

celery_app.conf.beat_schedule = {
    "drain-review-queue": {
        "task": "process_review_queue",
        "schedule": float(settings.queue_drain_interval_seconds),
    },
    "cleanup-old-data": {
        "task": "cleanup_old_data",
        "schedule": float(settings.cleanup_interval_seconds),
    },
    "send-notifications": {
        "task": "send_notifications",
        "schedule": float(settings.notification_interval_seconds),
    },
}
