from __future__ import annotations

from app.canonical.v1.listing import ListingV1
from app.canonical.v1.records import QueueEntryV1, QueueStatus
from app.core.clock import utcnow
from app.services import paths
from app.services.document_store import DocumentStore, WriteBatch


class ReviewQueue:
    """
    Global admin queue of one domain, keyed by sku only. An entry exists exactly
    while its listing is PENDING.
    """

    def __init__(self, store: DocumentStore, *, domain: str):
        self.store = store
        self.domain = domain

    async def get(self, sku_id: str) -> QueueEntryV1 | None:
        value = await self.store.get_value(paths.queue_entry(self.domain, sku_id))
        return QueueEntryV1.model_validate(value) if value else None

    async def list_pending(self) -> list[QueueEntryV1]:
        # one bulk read of the whole queue
        entries = [QueueEntryV1.model_validate(s.value) for s in (await self.store.children(paths.admin_queue(self.domain))).values()]
        entries.sort(key=lambda e: e.queued_at)
        return entries

    def stage_put(
        self,
        batch: WriteBatch,
        listing: ListingV1,
        *,
        status: QueueStatus = "PENDING",
        reason: str | None = None,
        previous: QueueEntryV1 | None = None,
    ) -> QueueEntryV1:
        now = utcnow()
        entry = QueueEntryV1(
            sku_id=listing.sku_id,
            domain=self.domain,
            tenant_id=listing.tenant_id,
            supplier_id=listing.supplier_id,
            status=status,
            reason=reason,
            title=listing.title,
            thumb_url=listing.cover_url(),
            queued_at=previous.queued_at if previous else now,
            updated_at=now,
        )
        batch.set(paths.queue_entry(self.domain, listing.sku_id), entry.model_dump(mode="json"))
        return entry

    def stage_refresh(self, batch: WriteBatch, entry: QueueEntryV1, listing: ListingV1) -> QueueEntryV1:
        """
        Keep the mirror's display fields in step with the listing; status and reason unchanged.
        """
        return self.stage_put(batch, listing, status=entry.status, reason=entry.reason, previous=entry)

    def stage_remove(self, batch: WriteBatch, sku_id: str) -> None:
        batch.delete(paths.queue_entry(self.domain, sku_id))
