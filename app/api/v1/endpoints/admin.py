from fastapi import APIRouter, Depends, File, Response, UploadFile

from app.api.v1.deps import etag, get_allocator, get_pipeline
from app.canonical.v1.records import AuditEventV1, PublicationRecordV1, QueueEntryV1, UnlistRequestV1
from app.schemas.listing import (
    ApprovalIn,
    DeleteOut,
    ListingOut,
    MediaOrderIn,
    ReasonIn,
    SkuCodeIn,
    SkuCodeOut,
    listing_out,
)
from app.services.auth import AdminIdentity, get_admin
from app.services.moderation import ListingPipeline
from app.services.sku_allocator import SkuAllocator

router = APIRouter(prefix="/admin")


@router.put("/tenants/{tenant_id}/sku-code", response_model=SkuCodeOut)
async def set_sku_code(
    tenant_id: str,
    payload: SkuCodeIn,
    admin: AdminIdentity = Depends(get_admin),
    allocator: SkuAllocator = Depends(get_allocator),
) -> SkuCodeOut:
    code = await allocator.set_tenant_code(tenant_id, payload.code, actor=admin.actor)
    return SkuCodeOut(tenant_id=tenant_id, code=code)


@router.get("/{domain}/queue", response_model=list[QueueEntryV1])
async def list_queue(
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[QueueEntryV1]:
    return await pipeline.list_queue()


@router.get("/{domain}/published", response_model=list[PublicationRecordV1])
async def list_published(
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[PublicationRecordV1]:
    return await pipeline.list_published()


@router.get("/{domain}/tenants/{tenant_id}/unlist-requests", response_model=list[UnlistRequestV1])
async def list_unlist_requests(
    tenant_id: str,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[UnlistRequestV1]:
    return await pipeline.list_unlist_requests(tenant_id)


@router.get("/{domain}/listings/{sku_id}", response_model=ListingOut)
async def get_listing(
    sku_id: str,
    response: Response,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    out = listing_out(await pipeline.admin_get(sku_id))
    response.headers["ETag"] = etag(out.version)
    return out


@router.get("/{domain}/listings/{sku_id}/audit", response_model=list[AuditEventV1])
async def list_audit(
    sku_id: str,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[AuditEventV1]:
    return await pipeline.list_audit(sku_id)


@router.post("/{domain}/listings/{sku_id}/approve", response_model=PublicationRecordV1)
async def approve(
    sku_id: str,
    payload: ApprovalIn | None = None,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> PublicationRecordV1:
    payload = payload or ApprovalIn()
    return await pipeline.approve(
        admin,
        sku_id,
        margin_pct=payload.margin_pct,
        extra_tags=payload.extra_tags,
        title=payload.title,
        attributes=payload.attributes,
        expected_version=payload.expected_version,
    )


@router.post("/{domain}/listings/{sku_id}/reject", response_model=ListingOut)
async def reject(
    sku_id: str,
    payload: ReasonIn,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.reject(admin, sku_id, reason=payload.reason, expected_version=payload.expected_version)
    return listing_out(listing)


@router.post("/{domain}/listings/{sku_id}/hide", response_model=PublicationRecordV1)
async def hide(
    sku_id: str,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> PublicationRecordV1:
    return await pipeline.hide(admin, sku_id)


@router.post("/{domain}/listings/{sku_id}/unhide", response_model=PublicationRecordV1)
async def unhide(
    sku_id: str,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> PublicationRecordV1:
    return await pipeline.unhide(admin, sku_id)


@router.post("/{domain}/listings/{sku_id}/send-back", response_model=ListingOut)
async def send_back(
    sku_id: str,
    payload: ReasonIn,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.send_back(admin, sku_id, reason=payload.reason, expected_version=payload.expected_version)
    return listing_out(listing)


@router.delete("/{domain}/listings/{sku_id}", response_model=DeleteOut)
async def remove_listing(
    sku_id: str,
    purge_media: bool = True,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> DeleteOut:
    await pipeline.remove_listing(admin, sku_id, purge_media=purge_media)
    return DeleteOut(sku_id=sku_id, outcome="REMOVED")


# --- media curation ---

@router.put("/{domain}/listings/{sku_id}/media/order", response_model=ListingOut)
async def reorder_media(
    sku_id: str,
    payload: MediaOrderIn,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    return listing_out(await pipeline.admin_reorder_media(admin, sku_id, payload.asset_ids))


@router.put("/{domain}/listings/{sku_id}/media/{asset_id}", response_model=ListingOut)
async def replace_media(
    sku_id: str,
    asset_id: str,
    file: UploadFile = File(...),
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    data = await file.read()
    listing = await pipeline.admin_replace_media(
        admin, sku_id, asset_id, data=data, filename=file.filename, content_type=file.content_type
    )
    return listing_out(listing)


@router.delete("/{domain}/listings/{sku_id}/media/{asset_id}", response_model=ListingOut)
async def delete_media(
    sku_id: str,
    asset_id: str,
    purge: bool = True,
    admin: AdminIdentity = Depends(get_admin),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    return listing_out(await pipeline.admin_remove_media(admin, sku_id, asset_id, purge_from_store=purge))
