from __future__ import annotations

from app.canonical.v1.listing import ListingV1
from app.canonical.v1.records import SupplierNotificationV1
from app.core.clock import utcnow
from app.core.errors import NotFound
from app.services import paths
from app.services.document_store import DocumentStore, WriteBatch


class SupplierInbox:
    """
    Per-supplier notifications of one domain, one per sku (a newer send-back replaces an older one).
    """

    def __init__(self, store: DocumentStore, *, domain: str):
        self.store = store
        self.domain = domain

    async def list_notifications(self, tenant_id: str, supplier_id: str, *, unread_only: bool = False) -> list[SupplierNotificationV1]:
        snaps = await self.store.children(paths.inbox(tenant_id, self.domain, supplier_id))
        items = [SupplierNotificationV1.model_validate(s.value) for s in snaps.values()]
        if unread_only:
            items = [n for n in items if not n.read]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items

    def stage_notify(self, batch: WriteBatch, listing: ListingV1, *, reason: str, created_by: str) -> SupplierNotificationV1:
        note = SupplierNotificationV1(
            sku_id=listing.sku_id,
            domain=self.domain,
            tenant_id=listing.tenant_id,
            supplier_id=listing.supplier_id,
            reason=reason,
            created_by=created_by,
            created_at=utcnow(),
        )
        batch.set(
            paths.inbox_entry(listing.tenant_id, self.domain, listing.supplier_id, listing.sku_id),
            note.model_dump(mode="json"),
        )
        return note

    def stage_remove(self, batch: WriteBatch, listing: ListingV1) -> None:
        batch.delete(paths.inbox_entry(listing.tenant_id, self.domain, listing.supplier_id, listing.sku_id))

    async def mark_read(self, tenant_id: str, supplier_id: str, sku_id: str) -> SupplierNotificationV1:
        path = paths.inbox_entry(tenant_id, self.domain, supplier_id, sku_id)
        snap = await self.store.get(path)
        if snap is None:
            raise NotFound(f"No notification for {sku_id}", sku_id=sku_id, transition="mark_read")
        note = SupplierNotificationV1.model_validate(snap.value)
        if note.read:
            return note
        note = note.model_copy(update={"read": True, "read_at": utcnow()})
        await self.store.apply(
            WriteBatch().expect(path, snap.version).set(path, note.model_dump(mode="json")),
            sku_id=sku_id,
            transition="mark_read",
        )
        return note
