from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Literal

from opentelemetry import trace
from pydantic import ValidationError

from app.canonical.v1.listing import ListingDraftV1, ListingV1
from app.canonical.v1.media import MediaAssetV1
from app.canonical.v1.records import (
    AuditEventV1,
    PublicationRecordV1,
    QueueEntryV1,
    SupplierNotificationV1,
    UnlistRequestV1,
)
from app.core.clock import utcnow
from app.core.errors import (
    InvalidTransition,
    NotFound,
    PipelineError,
    ValidationFailed,
    VersionConflict,
)
from app.domains.base import DomainAdapter
from app.services import media_manager as media_ops
from app.services import paths
from app.services.audit import audit, list_audit
from app.services.auth import AdminIdentity, SupplierIdentity
from app.services.document_store import DocumentStore, WriteBatch
from app.services.inbox import SupplierInbox
from app.services.media_manager import MediaManager
from app.services.pricing import compute_price
from app.services.publication_index import PublicationIndex
from app.services.review_queue import ReviewQueue
from app.services.sku_allocator import SkuAllocator
from app.services.submissions import SubmissionRepository
from app.services.tags import uniq_tags

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# derived price fields exist only while APPROVED
_UNPRICED: dict[str, Any] = {"base_price": None, "public_price": None, "price_source": None}

DeleteOutcome = Literal["DELETED", "UNLIST_REQUESTED"]


def _error_details(e: ValidationError, *, prefix: str | None = None) -> list[dict[str, Any]]:
    out = []
    for err in e.errors(include_url=False):
        loc = [str(p) for p in err.get("loc", ())]
        out.append({"loc": [prefix, *loc] if prefix else loc, "msg": err.get("msg"), "type": err.get("type")})
    return out


class ListingPipeline:
    """
    Listing lifecycle and moderation for one product domain.

    Every transition reads what it needs, stages all of its writes (submission,
    queue, publication, index buckets, inbox, audit) into one WriteBatch guarded
    by the version it read, and applies it in a single call. Blob purges happen
    only after the batch has committed and never fail the transition.
    """

    def __init__(
        self,
        *,
        adapter: DomainAdapter,
        store: DocumentStore,
        media: MediaManager,
        allocator: SkuAllocator,
        default_margin_pct: float = 20.0,
    ):
        self.adapter = adapter
        self.domain = adapter.key
        self.store = store
        self.media = media
        self.allocator = allocator
        self.default_margin_pct = default_margin_pct

        self.submissions = SubmissionRepository(store, domain=self.domain)
        self.queue = ReviewQueue(store, domain=self.domain)
        self.publications = PublicationIndex(store, adapter=adapter)
        self.inbox = SupplierInbox(store, domain=self.domain)

    # ------------------------------------------------------------------ helpers

    @contextmanager
    def _traced(self, transition: str, sku_id: str | None = None) -> Iterator[Any]:
        with tracer.start_as_current_span(f"listing.{transition}") as span:
            span.set_attribute("listing.domain", self.domain)
            if sku_id:
                span.set_attribute("listing.sku_id", sku_id)
            yield span

    async def _apply(self, batch: WriteBatch, *, sku_id: str, transition: str) -> None:
        await self.store.apply(batch, sku_id=sku_id, transition=transition)

    @staticmethod
    def _check_version(listing: ListingV1, expected: int | None, transition: str) -> None:
        if expected is not None and expected != listing.version:
            raise VersionConflict(
                f"Listing {listing.sku_id} is at version {listing.version}, not {expected}",
                sku_id=listing.sku_id,
                transition=transition,
            )

    @staticmethod
    def _require_reason(reason: str | None, *, sku_id: str, transition: str) -> str:
        if not (reason or "").strip():
            raise ValidationFailed("A reason is required", sku_id=sku_id, transition=transition)
        return reason

    def _parse_attributes(self, raw: dict[str, Any], *, sku_id: str, transition: str) -> dict[str, Any]:
        try:
            return self.adapter.parse_attributes(raw)
        except ValidationError as e:
            raise ValidationFailed(
                f"Invalid {self.adapter.label} attributes",
                sku_id=sku_id,
                transition=transition,
                detail=_error_details(e, prefix="attributes"),
            ) from e

    def _evolve(self, listing: ListingV1, *, transition: str, **changes: Any) -> ListingV1:
        try:
            return listing.evolve(**changes)
        except ValidationError as e:
            raise ValidationFailed(
                "Listing failed validation", sku_id=listing.sku_id, transition=transition, detail=_error_details(e)
            ) from e

    async def _admin_load(self, sku_id: str, *, transition: str) -> ListingV1:
        registration = await self.allocator.lookup(sku_id)
        if registration is None or registration.domain != self.domain:
            raise NotFound(f"Listing {sku_id} not found", sku_id=sku_id, transition=transition)
        return await self.submissions.get_required(registration.tenant_id, sku_id, transition=transition)

    def _publication(
        self, listing: ListingV1, previous: PublicationRecordV1 | None
    ) -> PublicationRecordV1:
        # re-approval keeps an admin's hide in place
        hidden = previous is not None and not previous.visible
        return PublicationRecordV1(
            sku_id=listing.sku_id,
            domain=self.domain,
            tenant_id=listing.tenant_id,
            supplier_id=listing.supplier_id,
            status="HIDDEN" if hidden else "APPROVED",
            visible=not hidden,
            title=listing.title,
            attributes=listing.attributes,
            tags=listing.tags,
            media=listing.media,
            cover_url=listing.cover_url(),
            currency=listing.pricing.currency,
            public_price=listing.public_price or 0,
            price_on_request=not listing.public_price,
            price_source=listing.price_source,
            margin_pct=listing.admin_margin_pct,
            approved_at=listing.approved_at,
            approved_by=listing.approved_by,
            hidden_at=previous.hidden_at if hidden else None,
            hidden_by=previous.hidden_by if hidden else None,
            updated_at=utcnow(),
            indexed=previous.indexed if previous else [],
        )

    def _merge_supplied_media(
        self, current: ListingV1, supplied: list[MediaAssetV1] | None
    ) -> tuple[list[MediaAssetV1], list[MediaAssetV1]]:
        """
        A supplier-sent media list may drop or reorder stored assets, never introduce
        or alter them. Returns (new list, dropped assets).
        """
        if supplied is None:
            return current.media, []

        stored = {m.id: m for m in current.media}
        ids = [m.id for m in supplied]
        unknown = [i for i in ids if i not in stored]
        if unknown or len(ids) != len(set(ids)):
            raise ValidationFailed(
                "Media list may only reference uploaded assets, each once",
                sku_id=current.sku_id,
                transition="save_draft",
                detail=[{"loc": ["media"], "msg": f"unknown or repeated ids: {unknown or ids}", "type": "value_error"}],
            )

        chosen = [stored[m.id].model_copy(update={"order": m.order}) for m in supplied]
        dropped = [m for m in current.media if m.id not in set(ids)]
        return media_ops.normalize(chosen), dropped

    async def _commit_supplier_edit(
        self,
        who: SupplierIdentity,
        current: ListingV1,
        updated: ListingV1,
        *,
        transition: str,
        detail: dict | None = None,
    ) -> ListingV1:
        """
        Persist a supplier change. Editing an APPROVED listing unpublishes it and
        puts it back in the queue in the same batch.
        """
        batch = WriteBatch()
        now = utcnow()

        if current.status == "APPROVED":
            previous = await self.publications.get(current.sku_id)
            updated = self._evolve(updated, transition=transition, status="PENDING", submitted_at=now, **_UNPRICED)
            self.publications.stage_unpublish(batch, current.sku_id, previous)
            self.queue.stage_put(batch, updated, reason="SUPPLIER_EDITED")
            audit(batch, domain=self.domain, sku_id=current.sku_id, actor=who.actor, action="unpublished_on_edit")
            log.info("%s: approved listing edited, back to review: domain=%s sku=%s", transition, self.domain, current.sku_id)
        elif current.status == "PENDING":
            entry = await self.queue.get(current.sku_id)
            if entry is not None:
                self.queue.stage_refresh(batch, entry, updated)

        self.submissions.stage_upsert(batch, updated)
        self.submissions.stage_defaults(batch, updated, self.adapter.default_fields)
        audit(batch, domain=self.domain, sku_id=current.sku_id, actor=who.actor, action=transition, detail=detail)

        await self._apply(batch, sku_id=current.sku_id, transition=transition)
        return updated.evolve(version=current.version + 1)

    # ------------------------------------------------------------------ supplier

    async def create_draft(self, who: SupplierIdentity) -> ListingV1:
        with self._traced("create_draft") as span:
            sku_id = await self.allocator.allocate(
                tenant_id=who.tenant_id,
                supplier_id=who.supplier_id,
                domain=self.domain,
                sku_prefix=self.adapter.sku_prefix,
            )
            span.set_attribute("listing.sku_id", sku_id)

            now = utcnow()
            listing = ListingV1(
                sku_id=sku_id,
                domain=self.domain,
                tenant_id=who.tenant_id,
                supplier_id=who.supplier_id,
                status="DRAFT",
                tags=list(self.adapter.default_tags),
                created_at=now,
                updated_at=now,
            )
            batch = WriteBatch()
            # version 0: the document must not exist yet
            self.submissions.stage_upsert(batch, listing)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=who.actor, action="create_draft")
            await self._apply(batch, sku_id=sku_id, transition="create_draft")

            log.info("create_draft: domain=%s sku=%s tenant=%s supplier=%s", self.domain, sku_id, who.tenant_id, who.supplier_id)
            return listing.evolve(version=1)

    async def get_listing(self, who: SupplierIdentity, sku_id: str) -> ListingV1:
        return await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="get")

    async def list_listings(self, who: SupplierIdentity) -> list[ListingV1]:
        return await self.submissions.list_for_supplier(who.tenant_id, who.supplier_id)

    async def save_draft(
        self,
        who: SupplierIdentity,
        sku_id: str,
        draft: ListingDraftV1,
        *,
        expected_version: int | None = None,
    ) -> ListingV1:
        with self._traced("save_draft", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="save_draft")
            self._check_version(current, expected_version, "save_draft")

            attributes = self._parse_attributes(draft.attributes, sku_id=sku_id, transition="save_draft")
            media, dropped = self._merge_supplied_media(current, draft.media)
            tags = uniq_tags([*draft.tags, *self.adapter.derive_tags(attributes)])
            title = (draft.title or "").strip() or self.adapter.display_title(attributes)

            updated = self._evolve(
                current,
                transition="save_draft",
                title=title,
                attributes=attributes,
                tags=tags,
                media=media,
                pricing=draft.pricing,
                updated_at=utcnow(),
            )
            saved = await self._commit_supplier_edit(who, current, updated, transition="save_draft")

            self.media.purge_all(m.storage_ref for m in dropped)
            log.info("save_draft: domain=%s sku=%s status=%s version=%d", self.domain, sku_id, saved.status, saved.version)
            return saved

    async def submit(self, who: SupplierIdentity, sku_id: str, *, expected_version: int | None = None) -> ListingV1:
        with self._traced("submit", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="submit")
            self._check_version(current, expected_version, "submit")

            missing = self.adapter.missing_for_submit(current.attributes)
            if not current.title:
                missing.append("title")
            pricing = current.pricing
            if pricing.price_mode == "RATE_TIMES_WEIGHT":
                missing.extend(f for f in ("rate_per_unit", "weight") if not (getattr(pricing, f) or 0) > 0)
            if missing:
                raise ValidationFailed(
                    f"Listing is incomplete: {', '.join(missing)}",
                    sku_id=sku_id,
                    transition="submit",
                    detail=[{"loc": [f], "msg": "required for submission", "type": "missing"} for f in missing],
                )

            now = utcnow()
            batch = WriteBatch()
            entry = await self.queue.get(sku_id)
            if current.status == "APPROVED":
                previous = await self.publications.get(sku_id)
                self.publications.stage_unpublish(batch, sku_id, previous)

            updated = self._evolve(
                current,
                transition="submit",
                status="PENDING",
                submitted_at=now,
                updated_at=now,
                rejection_reason=None,
                **_UNPRICED,
            )
            reason = "SUPPLIER_EDITED" if current.status == "APPROVED" else "SUPPLIER_SUBMITTED"
            self.queue.stage_put(batch, updated, status="PENDING", reason=reason, previous=entry)
            self.submissions.stage_upsert(batch, updated)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=who.actor, action="submit", detail={"from": current.status})
            await self._apply(batch, sku_id=sku_id, transition="submit")

            log.info("submit: domain=%s sku=%s from=%s", self.domain, sku_id, current.status)
            return updated.evolve(version=current.version + 1)

    async def delete_listing(self, who: SupplierIdentity, sku_id: str) -> DeleteOutcome:
        """
        Drafts, pending and rejected listings are deleted with their blobs.
        An approved listing stays up; an unlist request goes to the admin instead.
        """
        with self._traced("supplier_delete", sku_id):
            listing = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="supplier_delete")
            batch = WriteBatch()

            if listing.status == "APPROVED":
                self.submissions.stage_unlist_request(batch, listing)
                audit(batch, domain=self.domain, sku_id=sku_id, actor=who.actor, action="unlist_requested")
                await self._apply(batch, sku_id=sku_id, transition="supplier_delete")
                log.info("supplier_delete: unlist requested: domain=%s sku=%s", self.domain, sku_id)
                return "UNLIST_REQUESTED"

            self.submissions.stage_delete(batch, listing)
            self.queue.stage_remove(batch, sku_id)
            self.inbox.stage_remove(batch, listing)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=who.actor, action="deleted")
            await self._apply(batch, sku_id=sku_id, transition="supplier_delete")

            purged = self.media.purge_all(m.storage_ref for m in listing.media)
            log.info("supplier_delete: domain=%s sku=%s blobs_purged=%d/%d", self.domain, sku_id, purged, len(listing.media))
            return "DELETED"

    async def upload_media(
        self,
        who: SupplierIdentity,
        sku_id: str,
        *,
        kind: str,
        data: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> tuple[ListingV1, MediaAssetV1]:
        with self._traced("upload_media", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="upload_media")
            asset = self.media.upload(
                domain=self.domain,
                sku_id=sku_id,
                kind=kind,
                data=data,
                existing=current.media,
                filename=filename,
                content_type=content_type,
            )
            try:
                updated = self._evolve(current, transition="upload_media", media=[*current.media, asset], updated_at=utcnow())
                saved = await self._commit_supplier_edit(
                    who, current, updated, transition="upload_media", detail={"asset_id": asset.id, "kind": asset.kind}
                )
            except PipelineError:
                # nothing references the new blob
                self.media.purge(asset.storage_ref)
                raise
            return saved, asset

    async def replace_media(
        self,
        who: SupplierIdentity,
        sku_id: str,
        asset_id: str,
        *,
        data: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ListingV1:
        with self._traced("replace_media", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="replace_media")
            return await self._replace(current, asset_id, data, filename, content_type, actor=who, supplier=True)

    async def remove_media(
        self, who: SupplierIdentity, sku_id: str, asset_id: str, *, purge_from_store: bool = True
    ) -> ListingV1:
        with self._traced("remove_media", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="remove_media")
            remaining, removed = media_ops.remove(current.media, asset_id)
            updated = self._evolve(current, transition="remove_media", media=remaining, updated_at=utcnow())
            saved = await self._commit_supplier_edit(who, current, updated, transition="remove_media", detail={"asset_id": asset_id})
            if purge_from_store:
                self.media.purge(removed.storage_ref)
            return saved

    async def reorder_media(self, who: SupplierIdentity, sku_id: str, asset_ids: list[str]) -> ListingV1:
        with self._traced("reorder_media", sku_id):
            current = await self.submissions.get_owned(who.tenant_id, who.supplier_id, sku_id, transition="reorder_media")
            media = self._ordered(current, asset_ids, transition="reorder_media")
            updated = self._evolve(current, transition="reorder_media", media=media, updated_at=utcnow())
            return await self._commit_supplier_edit(who, current, updated, transition="reorder_media")

    async def get_supplier_defaults(self, who: SupplierIdentity) -> dict[str, Any]:
        return await self.submissions.get_defaults(who.tenant_id, who.supplier_id)

    async def list_inbox(self, who: SupplierIdentity, *, unread_only: bool = False) -> list[SupplierNotificationV1]:
        return await self.inbox.list_notifications(who.tenant_id, who.supplier_id, unread_only=unread_only)

    async def mark_notification_read(self, who: SupplierIdentity, sku_id: str) -> SupplierNotificationV1:
        return await self.inbox.mark_read(who.tenant_id, who.supplier_id, sku_id)

    # ------------------------------------------------------------------ admin

    async def admin_get(self, sku_id: str) -> ListingV1:
        return await self._admin_load(sku_id, transition="get")

    async def list_queue(self) -> list[QueueEntryV1]:
        return await self.queue.list_pending()

    async def list_published(self) -> list[PublicationRecordV1]:
        return await self.publications.list_all()

    async def list_audit(self, sku_id: str) -> list[AuditEventV1]:
        return await list_audit(self.store, domain=self.domain, sku_id=sku_id)

    async def list_unlist_requests(self, tenant_id: str) -> list[UnlistRequestV1]:
        return await self.submissions.list_unlist_requests(tenant_id)

    async def approve(
        self,
        admin: AdminIdentity,
        sku_id: str,
        *,
        margin_pct: float | None = None,
        extra_tags: list[str] | None = None,
        title: str | None = None,
        attributes: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> PublicationRecordV1:
        """
        Price and publish a queued listing. Re-running it on an approved listing
        re-prices and re-publishes (hidden records stay hidden).
        """
        with self._traced("approve", sku_id):
            listing = await self._admin_load(sku_id, transition="approve")
            self._check_version(listing, expected_version, "approve")

            entry = await self.queue.get(sku_id)
            if listing.status not in ("PENDING", "APPROVED") or (entry is None and listing.status != "APPROVED"):
                raise InvalidTransition(
                    f"Listing {sku_id} is not awaiting review (status {listing.status})",
                    sku_id=sku_id,
                    transition="approve",
                )
            if margin_pct is not None and margin_pct < 0:
                raise ValidationFailed("Margin cannot be negative", sku_id=sku_id, transition="approve")

            attrs = listing.attributes
            if attributes:
                attrs = self._parse_attributes({**attrs, **attributes}, sku_id=sku_id, transition="approve")

            margin = next(m for m in (margin_pct, listing.admin_margin_pct, self.default_margin_pct) if m is not None)
            quote = compute_price(listing.pricing, margin)

            now = utcnow()
            updated = self._evolve(
                listing,
                transition="approve",
                status="APPROVED",
                title=(title or "").strip() or listing.title,
                attributes=attrs,
                tags=uniq_tags([*listing.tags, *(extra_tags or [])]),
                admin_margin_pct=quote.margin_pct,
                base_price=quote.base_price,
                public_price=quote.public_price,
                price_source=quote.source,
                rejection_reason=None,
                approved_at=now,
                approved_by=admin.admin_id,
                updated_at=now,
            )

            previous = await self.publications.get(sku_id)
            batch = WriteBatch()
            self.submissions.stage_upsert(batch, updated)
            record = self.publications.stage_publish(batch, self._publication(updated, previous), previous)
            self.queue.stage_remove(batch, sku_id)
            audit(
                batch,
                domain=self.domain,
                sku_id=sku_id,
                actor=admin.actor,
                action="approve",
                detail={
                    "base_price": quote.base_price,
                    "public_price": quote.public_price,
                    "price_source": quote.source,
                    "margin_pct": quote.margin_pct,
                },
            )
            await self._apply(batch, sku_id=sku_id, transition="approve")

            log.info(
                "approve: domain=%s sku=%s admin=%s base=%s public_price=%s source=%s",
                self.domain, sku_id, admin.admin_id, quote.base_price, quote.public_price, quote.source,
            )
            return record

    async def reject(
        self, admin: AdminIdentity, sku_id: str, *, reason: str, expected_version: int | None = None
    ) -> ListingV1:
        with self._traced("reject", sku_id):
            reason = self._require_reason(reason, sku_id=sku_id, transition="reject")
            listing = await self._admin_load(sku_id, transition="reject")
            self._check_version(listing, expected_version, "reject")

            if await self.queue.get(sku_id) is None:
                raise InvalidTransition(f"Listing {sku_id} is not in the review queue", sku_id=sku_id, transition="reject")

            now = utcnow()
            updated = self._evolve(
                listing,
                transition="reject",
                status="REJECTED",
                rejection_reason=reason,
                rejected_at=now,
                rejected_by=admin.admin_id,
                updated_at=now,
                **_UNPRICED,
            )
            batch = WriteBatch()
            self.submissions.stage_upsert(batch, updated)
            self.queue.stage_remove(batch, sku_id)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=admin.actor, action="reject", detail={"reason": reason})
            await self._apply(batch, sku_id=sku_id, transition="reject")

            log.info("reject: domain=%s sku=%s admin=%s", self.domain, sku_id, admin.admin_id)
            return updated.evolve(version=listing.version + 1)

    async def _set_visibility(self, admin: AdminIdentity, sku_id: str, *, visible: bool) -> PublicationRecordV1:
        transition = "unhide" if visible else "hide"
        listing = await self._admin_load(sku_id, transition=transition)
        snap = await self.publications.snapshot(sku_id)
        if listing.status != "APPROVED" or snap is None:
            raise InvalidTransition(f"Listing {sku_id} is not published", sku_id=sku_id, transition=transition)

        record = PublicationRecordV1.model_validate(snap.value)
        if record.visible == visible:
            return record

        now = utcnow()
        changed = record.model_copy(
            update={
                "visible": visible,
                "status": "APPROVED" if visible else "HIDDEN",
                "hidden_at": None if visible else now,
                "hidden_by": None if visible else admin.admin_id,
                "updated_at": now,
            }
        )
        batch = WriteBatch().expect(paths.publication(self.domain, sku_id), snap.version)
        changed = self.publications.stage_publish(batch, changed, record)
        audit(batch, domain=self.domain, sku_id=sku_id, actor=admin.actor, action=transition)
        await self._apply(batch, sku_id=sku_id, transition=transition)

        log.info("%s: domain=%s sku=%s admin=%s", transition, self.domain, sku_id, admin.admin_id)
        return changed

    async def hide(self, admin: AdminIdentity, sku_id: str) -> PublicationRecordV1:
        with self._traced("hide", sku_id):
            return await self._set_visibility(admin, sku_id, visible=False)

    async def unhide(self, admin: AdminIdentity, sku_id: str) -> PublicationRecordV1:
        with self._traced("unhide", sku_id):
            return await self._set_visibility(admin, sku_id, visible=True)

    async def send_back(
        self, admin: AdminIdentity, sku_id: str, *, reason: str, expected_version: int | None = None
    ) -> ListingV1:
        with self._traced("send_back", sku_id):
            reason = self._require_reason(reason, sku_id=sku_id, transition="send_back")
            listing = await self._admin_load(sku_id, transition="send_back")
            self._check_version(listing, expected_version, "send_back")
            if listing.status != "APPROVED":
                raise InvalidTransition(
                    f"Only published listings can be sent back (status {listing.status})",
                    sku_id=sku_id,
                    transition="send_back",
                )

            now = utcnow()
            updated = self._evolve(
                listing,
                transition="send_back",
                status="PENDING",
                rejection_reason=reason,
                review_requested_at=now,
                review_requested_by=admin.admin_id,
                updated_at=now,
                **_UNPRICED,
            )
            previous = await self.publications.get(sku_id)
            batch = WriteBatch()
            self.submissions.stage_upsert(batch, updated)
            self.publications.stage_unpublish(batch, sku_id, previous)
            self.queue.stage_put(batch, updated, status="SUPPLIER_REVIEW", reason=reason)
            self.inbox.stage_notify(batch, updated, reason=reason, created_by=admin.admin_id)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=admin.actor, action="send_back", detail={"reason": reason})
            await self._apply(batch, sku_id=sku_id, transition="send_back")

            log.info("send_back: domain=%s sku=%s admin=%s", self.domain, sku_id, admin.admin_id)
            return updated.evolve(version=listing.version + 1)

    async def remove_listing(self, admin: AdminIdentity, sku_id: str, *, purge_media: bool = True) -> None:
        """
        Delete a listing everywhere in one batch, then purge its blobs (best effort).
        The SKU stays registered and is never reissued.
        """
        with self._traced("remove", sku_id):
            listing = await self._admin_load(sku_id, transition="remove")
            previous = await self.publications.get(sku_id)

            batch = WriteBatch()
            self.submissions.stage_delete(batch, listing)
            self.queue.stage_remove(batch, sku_id)
            self.publications.stage_unpublish(batch, sku_id, previous)
            self.inbox.stage_remove(batch, listing)
            audit(batch, domain=self.domain, sku_id=sku_id, actor=admin.actor, action="remove", detail={"purge_media": purge_media})
            await self._apply(batch, sku_id=sku_id, transition="remove")

            purged = self.media.purge_all(m.storage_ref for m in listing.media) if purge_media else 0
            log.info("remove: domain=%s sku=%s admin=%s blobs_purged=%d", self.domain, sku_id, admin.admin_id, purged)

    # --- admin media curation: no re-approval, published copy kept in step ---

    def _ordered(self, listing: ListingV1, asset_ids: list[str], *, transition: str) -> list[MediaAssetV1]:
        try:
            return media_ops.apply_order(listing.media, asset_ids)
        except ValidationFailed as e:
            e.sku_id, e.transition = listing.sku_id, transition
            raise

    async def _commit_curation(
        self, admin: AdminIdentity, listing: ListingV1, media: list[MediaAssetV1], *, transition: str, detail: dict | None = None
    ) -> ListingV1:
        now = utcnow()
        updated = self._evolve(listing, transition=transition, media=media, updated_at=now)

        batch = WriteBatch()
        self.submissions.stage_upsert(batch, updated)
        snap = await self.publications.snapshot(listing.sku_id)
        if snap is not None:
            record = PublicationRecordV1.model_validate(snap.value)
            batch.expect(snap.path, snap.version)
            self.publications.stage_publish(
                batch,
                record.model_copy(update={"media": updated.media, "cover_url": updated.cover_url(), "updated_at": now}),
                record,
            )
        entry = await self.queue.get(listing.sku_id)
        if entry is not None:
            self.queue.stage_refresh(batch, entry, updated)
        audit(batch, domain=self.domain, sku_id=listing.sku_id, actor=admin.actor, action=transition, detail=detail)
        await self._apply(batch, sku_id=listing.sku_id, transition=transition)
        return updated.evolve(version=listing.version + 1)

    async def admin_reorder_media(self, admin: AdminIdentity, sku_id: str, asset_ids: list[str]) -> ListingV1:
        with self._traced("admin_reorder_media", sku_id):
            listing = await self._admin_load(sku_id, transition="admin_reorder_media")
            media = self._ordered(listing, asset_ids, transition="admin_reorder_media")
            return await self._commit_curation(admin, listing, media, transition="admin_reorder_media")

    async def admin_remove_media(
        self, admin: AdminIdentity, sku_id: str, asset_id: str, *, purge_from_store: bool = True
    ) -> ListingV1:
        with self._traced("admin_remove_media", sku_id):
            listing = await self._admin_load(sku_id, transition="admin_remove_media")
            remaining, removed = media_ops.remove(listing.media, asset_id)
            saved = await self._commit_curation(
                admin, listing, remaining, transition="admin_remove_media", detail={"asset_id": asset_id}
            )
            if purge_from_store:
                self.media.purge(removed.storage_ref)
            return saved

    async def admin_replace_media(
        self,
        admin: AdminIdentity,
        sku_id: str,
        asset_id: str,
        *,
        data: bytes,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ListingV1:
        with self._traced("admin_replace_media", sku_id):
            listing = await self._admin_load(sku_id, transition="admin_replace_media")
            return await self._replace(listing, asset_id, data, filename, content_type, actor=admin, supplier=False)

    async def _replace(
        self,
        listing: ListingV1,
        asset_id: str,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        *,
        actor: SupplierIdentity | AdminIdentity,
        supplier: bool,
    ) -> ListingV1:
        old = next((m for m in listing.media if m.id == asset_id), None)
        if old is None:
            raise NotFound(f"Media asset not found: {asset_id}", sku_id=listing.sku_id, transition="replace_media")

        new = self.media.replace(
            domain=self.domain, sku_id=listing.sku_id, asset=old, data=data, filename=filename, content_type=content_type
        )
        media = media_ops.swap_in(listing.media, new)
        detail = {"asset_id": asset_id}
        try:
            if supplier:
                updated = self._evolve(listing, transition="replace_media", media=media, updated_at=utcnow())
                saved = await self._commit_supplier_edit(actor, listing, updated, transition="replace_media", detail=detail)
            else:
                saved = await self._commit_curation(actor, listing, media, transition="admin_replace_media", detail=detail)
        except PipelineError:
            self.media.purge(new.storage_ref)
            raise

        self.media.purge(old.storage_ref)
        return saved

    # ------------------------------------------------------------------ public catalog

    async def get_public(self, sku_id: str) -> PublicationRecordV1:
        record = await self.publications.get(sku_id)
        if record is None or not record.visible:
            raise NotFound(f"Listing {sku_id} is not in the catalog", sku_id=sku_id, transition="get_public")
        return record

    async def list_public(self) -> list[PublicationRecordV1]:
        return await self.publications.list_visible()

    async def browse(self, facet: str, value: str) -> list[PublicationRecordV1]:
        return await self.publications.browse(paths.seg(facet), value)
