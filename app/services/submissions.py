from __future__ import annotations

from typing import Any

from app.canonical.v1.listing import ListingV1
from app.canonical.v1.records import UnlistRequestV1
from app.core.clock import utcnow
from app.core.errors import AccessDenied, NotFound
from app.services import paths
from app.services.document_store import DocumentStore, Snapshot, WriteBatch


def _listing(snap: Snapshot) -> ListingV1:
    return ListingV1.model_validate({**snap.value, "version": snap.version})


class SubmissionRepository:
    """
    Canonical listing records of one domain, keyed by (tenant, sku), plus the
    tenant-scoped records that hang off them: supplier index, supplier defaults
    and unlist requests.

    Writes are staged into a WriteBatch; the caller applies it.
    """

    def __init__(self, store: DocumentStore, *, domain: str):
        self.store = store
        self.domain = domain

    def path(self, tenant_id: str, sku_id: str) -> str:
        return paths.submission(tenant_id, self.domain, sku_id)

    async def get(self, tenant_id: str, sku_id: str) -> ListingV1 | None:
        snap = await self.store.get(self.path(tenant_id, sku_id))
        return _listing(snap) if snap else None

    async def get_required(self, tenant_id: str, sku_id: str, *, transition: str | None = None) -> ListingV1:
        listing = await self.get(tenant_id, sku_id)
        if listing is None:
            raise NotFound(f"Listing {sku_id} not found", sku_id=sku_id, transition=transition)
        return listing

    async def get_owned(
        self, tenant_id: str, supplier_id: str, sku_id: str, *, transition: str | None = None
    ) -> ListingV1:
        listing = await self.get_required(tenant_id, sku_id, transition=transition)
        if listing.supplier_id != supplier_id:
            raise AccessDenied(f"Listing {sku_id} belongs to another supplier", sku_id=sku_id, transition=transition)
        return listing

    async def list_for_supplier(self, tenant_id: str, supplier_id: str) -> list[ListingV1]:
        index = await self.store.children(paths.supplier_index(tenant_id, self.domain, supplier_id))
        out: list[ListingV1] = []
        for sku_id in index:
            listing = await self.get(tenant_id, sku_id)
            if listing is not None:
                out.append(listing)
        out.sort(key=lambda x: x.updated_at, reverse=True)
        return out

    def stage_upsert(self, batch: WriteBatch, listing: ListingV1, *, expect_current: bool = True) -> None:
        """
        Whole-record replace (media included). Guarded by the version the
        listing was read at unless expect_current is False.
        """
        path = self.path(listing.tenant_id, listing.sku_id)
        batch.set(path, listing.to_document())
        batch.set(paths.supplier_index_entry(listing.tenant_id, self.domain, listing.supplier_id, listing.sku_id), True)
        if expect_current:
            batch.expect(path, listing.version)

    def stage_delete(self, batch: WriteBatch, listing: ListingV1) -> None:
        path = self.path(listing.tenant_id, listing.sku_id)
        batch.expect(path, listing.version)
        batch.delete(path)
        batch.delete(paths.supplier_index_entry(listing.tenant_id, self.domain, listing.supplier_id, listing.sku_id))
        batch.delete(paths.unlist_request(listing.tenant_id, self.domain, listing.sku_id))

    # --- supplier defaults ---

    def stage_defaults(self, batch: WriteBatch, listing: ListingV1, fields: tuple[str, ...]) -> None:
        attrs = {f: listing.attributes[f] for f in fields if listing.attributes.get(f) not in (None, "", [])}
        batch.set(
            paths.supplier_defaults(listing.tenant_id, self.domain, listing.supplier_id),
            {
                "attributes": attrs,
                "price_mode": listing.pricing.price_mode,
                "currency": listing.pricing.currency,
                "updated_at": utcnow().isoformat(),
            },
        )

    async def get_defaults(self, tenant_id: str, supplier_id: str) -> dict[str, Any]:
        return await self.store.get_value(paths.supplier_defaults(tenant_id, self.domain, supplier_id), {}) or {}

    # --- unlist requests ---

    def stage_unlist_request(self, batch: WriteBatch, listing: ListingV1) -> UnlistRequestV1:
        req = UnlistRequestV1(
            sku_id=listing.sku_id,
            domain=self.domain,
            tenant_id=listing.tenant_id,
            supplier_id=listing.supplier_id,
            created_at=utcnow(),
        )
        batch.set(paths.unlist_request(listing.tenant_id, self.domain, listing.sku_id), req.model_dump(mode="json"))
        return req

    async def list_unlist_requests(self, tenant_id: str) -> list[UnlistRequestV1]:
        snaps = await self.store.children(paths.unlist_requests(tenant_id, self.domain))
        return [UnlistRequestV1.model_validate(s.value) for s in snaps.values()]
