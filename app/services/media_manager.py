from __future__ import annotations

import logging
import mimetypes
from datetime import datetime, timedelta
from pathlib import PurePosixPath
from typing import Callable, Iterable

from app.canonical.v1.media import MEDIA_FOLDERS, MEDIA_KINDS, MediaAssetV1
from app.core.clock import utcnow
from app.core.errors import NotFound, StorageFailure, ValidationFailed
from app.core.ids import gen_id, short_token
from app.services import paths
from app.services.storage import LocalObjectStore

log = logging.getLogger(__name__)

# content-type families accepted per kind; None (unknown) is always accepted
_ACCEPTED_TYPES: dict[str, tuple[str, ...]] = {
    "IMG": ("image/",),
    "VID": ("video/",),
    "CERT": ("image/", "application/pdf"),
}

PurgeEnqueuer = Callable[[str], None]


def _sort_key(m: MediaAssetV1):
    return (m.order, m.created_at, m.id)


def normalize(assets: Iterable[MediaAssetV1]) -> list[MediaAssetV1]:
    """
    Sort each kind by its current order and re-index it to 0..n-1.
    """
    out: list[MediaAssetV1] = []
    items = list(assets)
    for kind in MEDIA_KINDS:
        same = sorted((m for m in items if m.kind == kind), key=_sort_key)
        out.extend(m.model_copy(update={"order": i}) for i, m in enumerate(same))
    return out


def reorder(assets: Iterable[MediaAssetV1]) -> list[MediaAssetV1]:
    """
    Take the given sequence as the new order: each kind is re-indexed to 0..n-1
    in the order its assets appear. No I/O.
    """
    counters: dict[str, int] = {}
    out: list[MediaAssetV1] = []
    for m in assets:
        idx = counters.get(m.kind, 0)
        counters[m.kind] = idx + 1
        out.append(m.model_copy(update={"order": idx}))
    return out


def apply_order(assets: list[MediaAssetV1], asset_ids: list[str]) -> list[MediaAssetV1]:
    """
    Reorder by a list of asset ids. The ids must name every current asset exactly once.
    """
    by_id = {m.id: m for m in assets}
    if len(asset_ids) != len(set(asset_ids)) or set(asset_ids) != set(by_id):
        raise ValidationFailed("Media order must list every asset id exactly once")
    return reorder(by_id[i] for i in asset_ids)


def remove(assets: list[MediaAssetV1], asset_id: str) -> tuple[list[MediaAssetV1], MediaAssetV1]:
    """
    Drop one asset and close the gap it leaves in its kind.
    """
    removed = next((m for m in assets if m.id == asset_id), None)
    if removed is None:
        raise NotFound(f"Media asset not found: {asset_id}")
    return normalize(m for m in assets if m.id != asset_id), removed


def swap_in(assets: list[MediaAssetV1], replacement: MediaAssetV1) -> list[MediaAssetV1]:
    return [replacement if m.id == replacement.id else m for m in assets]


def _after(previous: datetime | None) -> datetime:
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _extension(filename: str | None, content_type: str | None) -> str:
    suffix = PurePosixPath(filename or "").suffix.lower().lstrip(".")
    if suffix and suffix.isalnum():
        return suffix
    guessed = mimetypes.guess_extension(content_type or "") if content_type else None
    return (guessed or ".bin").lstrip(".")


class MediaManager:
    """
    Blob-store side of listing media. Upload and replace store a blob and hand back
    an asset; persisting the listing's media list is the caller's job.
    """

    def __init__(
        self,
        store: LocalObjectStore,
        *,
        max_bytes: int,
        enqueue_purge: PurgeEnqueuer | None = None,
    ):
        self.store = store
        self.max_bytes = max_bytes
        self._enqueue_purge = enqueue_purge

    def _check(self, kind: str, data: bytes, content_type: str | None) -> None:
        if kind not in MEDIA_KINDS:
            raise ValidationFailed(f"Unknown media kind: {kind}")
        if not data:
            raise ValidationFailed("Empty file")
        if len(data) > self.max_bytes:
            raise ValidationFailed(f"File exceeds {self.max_bytes} bytes")
        if content_type and not content_type.startswith(_ACCEPTED_TYPES[kind]):
            raise ValidationFailed(f"Content type {content_type} is not accepted for {kind}")

    def blob_key(self, *, domain: str, sku_id: str, kind: str, at: datetime, ext: str) -> str:
        ts = int(at.timestamp() * 1000)
        name = f"{sku_id}_{kind}_{ts}_{short_token(6)}.{ext}"
        return f"global/{paths.seg(domain)}/{paths.seg(sku_id)}/{MEDIA_FOLDERS[kind]}/{name}"

    def upload(
        self,
        *,
        domain: str,
        sku_id: str,
        kind: str,
        data: bytes,
        existing: list[MediaAssetV1],
        filename: str | None = None,
        content_type: str | None = None,
    ) -> MediaAssetV1:
        """
        Store one file and return its asset with the next free order of its kind.
        A failed put raises StorageFailure and leaves nothing behind.
        """
        self._check(kind, data, content_type)
        now = utcnow()
        key = self.blob_key(domain=domain, sku_id=sku_id, kind=kind, at=now, ext=_extension(filename, content_type))
        url = self.store.put_bytes(key=key, data=data, content_type=content_type)

        return MediaAssetV1(
            id=gen_id("med"),
            kind=kind,
            storage_ref=key,
            url=url,
            order=sum(1 for m in existing if m.kind == kind),
            content_type=content_type,
            size_bytes=len(data),
            created_at=now,
            updated_at=now,
        )

    def replace(
        self,
        *,
        domain: str,
        sku_id: str,
        asset: MediaAssetV1,
        data: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> MediaAssetV1:
        """
        Store the new file under a new key; id, kind and order are kept and
        updated_at moves strictly forward. The old blob is left for the caller
        to purge once the listing no longer references it.
        """
        self._check(asset.kind, data, content_type)
        at = _after(asset.updated_at)
        key = self.blob_key(domain=domain, sku_id=sku_id, kind=asset.kind, at=at, ext=_extension(filename, content_type))
        url = self.store.put_bytes(key=key, data=data, content_type=content_type)

        return asset.model_copy(
            update={
                "storage_ref": key,
                "url": url,
                "content_type": content_type,
                "size_bytes": len(data),
                "updated_at": at,
            }
        )

    def purge(self, storage_ref: str) -> bool:
        """
        Best-effort blob delete. On failure the delete is handed to the worker
        when a purge enqueuer is configured. Never raises.
        """
        try:
            self.store.delete(storage_ref)
            return True
        except (StorageFailure, ValidationFailed):
            log.warning("blob purge failed: ref=%s", storage_ref, exc_info=True)

        if self._enqueue_purge is not None:
            try:
                self._enqueue_purge(storage_ref)
            except Exception:
                log.warning("blob purge enqueue failed: ref=%s", storage_ref, exc_info=True)
        return False

    def purge_all(self, refs: Iterable[str]) -> int:
        return sum(1 for ref in refs if self.purge(ref))
