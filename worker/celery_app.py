from celery import Celery
from app.core.config import settings

celery = Celery(
    "backoffice-worker",
    broker=settings.rabbitmq_url,
    backend=settings.redis_url,
    include=["worker.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "worker.tasks.purge_blob": {"queue": "media"},
    },
)


def enqueue_blob_purge(storage_ref: str) -> None:
    celery.send_task("worker.tasks.purge_blob", args=[storage_ref], queue="media")
