from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from app.core.config import settings
from app.core.db import SessionLocal
from app.domains.registry import get_domain_adapter
from app.services.document_store import DocumentStore
from app.services.media_manager import MediaManager
from app.services.moderation import ListingPipeline
from app.services.sku_allocator import SkuAllocator
from app.services.storage import LocalObjectStore
from worker.celery_app import enqueue_blob_purge


@lru_cache
def get_store() -> DocumentStore:
    return DocumentStore(SessionLocal)


@lru_cache
def get_media_manager() -> MediaManager:
    return MediaManager(
        LocalObjectStore(settings.blob_store_dir, base_url=settings.media_base_url),
        max_bytes=settings.media_max_bytes,
        enqueue_purge=enqueue_blob_purge,
    )


def get_allocator(store: DocumentStore = Depends(get_store)) -> SkuAllocator:
    return SkuAllocator(
        store,
        serial_width=settings.sku_serial_width,
        max_attempts=settings.sku_allocation_retries,
        backoff_base_ms=settings.sku_backoff_base_ms,
        backoff_cap_ms=settings.sku_backoff_cap_ms,
    )


def get_pipeline(
    domain: str,
    store: DocumentStore = Depends(get_store),
    media: MediaManager = Depends(get_media_manager),
    allocator: SkuAllocator = Depends(get_allocator),
) -> ListingPipeline:
    try:
        adapter = get_domain_adapter(domain)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown product domain: {domain}")
    return ListingPipeline(
        adapter=adapter,
        store=store,
        media=media,
        allocator=allocator,
        default_margin_pct=settings.default_margin_pct,
    )


def if_match_version(if_match: str | None = Header(default=None, alias="If-Match")) -> int | None:
    if if_match is None or if_match.strip() == "*":
        return None
    raw = if_match.strip().removeprefix("W/").strip('"')
    if not raw.isdigit():
        raise HTTPException(status_code=400, detail="If-Match must carry a listing version ETag")
    return int(raw)


def etag(version: int) -> str:
    return f'"{version}"'
