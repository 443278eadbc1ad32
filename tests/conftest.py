import os

import pytest
import httpx

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

# Import Base + all models so metadata is complete
from app.models.base import Base
from app.models.document import Document  # noqa: F401

from app.main import app
from app.api.v1.deps import get_media_manager, get_store
from app.domains.registry import get_domain_adapter
from app.services.document_store import DocumentStore
from app.services.media_manager import MediaManager
from app.services.moderation import ListingPipeline
from app.services.sku_allocator import SkuAllocator
from app.services.storage import LocalObjectStore


TENANT = "GST29ABCDE1234F1Z5"
TENANT_CODE = "AB"


def _test_db_url(tmp_path) -> str:
    # DATABASE_URL_TEST points at a throwaway database; otherwise a SQLite file per test
    return os.getenv("DATABASE_URL_TEST") or f"sqlite+aiosqlite:///{tmp_path / 'store.db'}"


@pytest.fixture
async def async_engine(tmp_path):
    engine = create_async_engine(_test_db_url(tmp_path), future=True)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def store(async_engine) -> DocumentStore:
    return DocumentStore(async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession))


@pytest.fixture
def blob_store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(str(tmp_path / "blobs"), base_url="http://test/media")


@pytest.fixture
def deferred_purges() -> list:
    # blob refs handed to the worker after an inline delete failed
    return []


@pytest.fixture
def media(blob_store, deferred_purges) -> MediaManager:
    return MediaManager(blob_store, max_bytes=1024 * 1024, enqueue_purge=deferred_purges.append)


@pytest.fixture
def allocator(store) -> SkuAllocator:
    return SkuAllocator(store, serial_width=3, max_attempts=100, backoff_base_ms=1, backoff_cap_ms=20)


@pytest.fixture
async def tenant(allocator) -> str:
    await allocator.set_tenant_code(TENANT, TENANT_CODE, actor="admin:setup")
    return TENANT


@pytest.fixture
def make_pipeline(store, media, allocator):
    def _make(domain: str = "rudraksha") -> ListingPipeline:
        return ListingPipeline(
            adapter=get_domain_adapter(domain),
            store=store,
            media=media,
            allocator=allocator,
            default_margin_pct=20.0,
        )
    return _make


@pytest.fixture
def pipeline(make_pipeline) -> ListingPipeline:
    return make_pipeline("rudraksha")


@pytest.fixture
async def client(store, media):
    """
    HTTP client wired to the per-test store and blob store via dependency overrides.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_media_manager] = lambda: media

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
