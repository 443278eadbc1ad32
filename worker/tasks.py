import logging

from worker.celery_app import celery
from app.core.config import settings
from app.core.errors import StorageFailure
from app.services.retry import compute_backoff_seconds
from app.services.storage import LocalObjectStore


log = logging.getLogger(__name__)


def _store() -> LocalObjectStore:
    return LocalObjectStore(settings.blob_store_dir, base_url=settings.media_base_url)


@celery.task(name="worker.tasks.purge_blob", bind=True, max_retries=settings.blob_purge_max_retries)
def purge_blob(self, storage_ref: str) -> None:
    """
    Deferred delete of a blob the API could not remove inline.
    Missing blobs count as purged.
    """
    try:
        _store().delete(storage_ref)
    except StorageFailure as e:
        attempt = self.request.retries + 1
        if attempt > self.max_retries:
            log.error("purge_blob: giving up: ref=%s attempts=%d", storage_ref, attempt)
            raise
        countdown = compute_backoff_seconds(attempt)
        log.warning("purge_blob: failed, retrying in %ss: ref=%s attempt=%d", countdown, storage_ref, attempt)
        raise self.retry(exc=e, countdown=countdown)

    log.info("purge_blob: done: ref=%s", storage_ref)
