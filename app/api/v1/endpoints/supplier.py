from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from app.canonical.v1.listing import ListingDraftV1
from app.canonical.v1.records import SupplierNotificationV1
from app.api.v1.deps import etag, get_pipeline, if_match_version
from app.schemas.listing import DeleteOut, ListingOut, MediaOrderIn, MediaUploadOut, listing_out
from app.services.auth import SupplierIdentity, get_supplier
from app.services.moderation import ListingPipeline

router = APIRouter(prefix="/supplier/{domain}")


def _with_etag(response: Response, out: ListingOut) -> ListingOut:
    response.headers["ETag"] = etag(out.version)
    return out


@router.post("/listings", response_model=ListingOut, status_code=201)
async def create_listing(
    response: Response,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.create_draft(who)
    return _with_etag(response, listing_out(listing))


@router.get("/listings", response_model=list[ListingOut])
async def list_listings(
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[ListingOut]:
    return [listing_out(x) for x in await pipeline.list_listings(who)]


@router.get("/listings/{sku_id}", response_model=ListingOut)
async def get_listing(
    sku_id: str,
    response: Response,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    return _with_etag(response, listing_out(await pipeline.get_listing(who, sku_id)))


@router.put("/listings/{sku_id}", response_model=ListingOut)
async def save_listing(
    sku_id: str,
    payload: ListingDraftV1,
    response: Response,
    expected_version: int | None = Depends(if_match_version),
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.save_draft(who, sku_id, payload, expected_version=expected_version)
    return _with_etag(response, listing_out(listing))


@router.post("/listings/{sku_id}/submit", response_model=ListingOut)
async def submit_listing(
    sku_id: str,
    response: Response,
    expected_version: int | None = Depends(if_match_version),
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.submit(who, sku_id, expected_version=expected_version)
    return _with_etag(response, listing_out(listing))


@router.delete("/listings/{sku_id}", response_model=DeleteOut)
async def delete_listing(
    sku_id: str,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> DeleteOut:
    outcome = await pipeline.delete_listing(who, sku_id)
    return DeleteOut(sku_id=sku_id, outcome=outcome)


# --- media ---

@router.post("/listings/{sku_id}/media", response_model=MediaUploadOut, status_code=201)
async def upload_media(
    sku_id: str,
    response: Response,
    kind: str = Form("IMG"),
    file: UploadFile = File(...),
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> MediaUploadOut:
    data = await file.read()
    listing, asset = await pipeline.upload_media(
        who,
        sku_id,
        kind=kind.upper(),
        data=data,
        filename=file.filename,
        content_type=file.content_type,
    )
    out = listing_out(listing)
    response.headers["ETag"] = etag(out.version)
    return MediaUploadOut(asset=asset, listing=out)


@router.put("/listings/{sku_id}/media/order", response_model=ListingOut)
async def reorder_media(
    sku_id: str,
    payload: MediaOrderIn,
    response: Response,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.reorder_media(who, sku_id, payload.asset_ids)
    return _with_etag(response, listing_out(listing))


@router.put("/listings/{sku_id}/media/{asset_id}", response_model=ListingOut)
async def replace_media(
    sku_id: str,
    asset_id: str,
    response: Response,
    file: UploadFile = File(...),
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    data = await file.read()
    listing = await pipeline.replace_media(
        who, sku_id, asset_id, data=data, filename=file.filename, content_type=file.content_type
    )
    return _with_etag(response, listing_out(listing))


@router.delete("/listings/{sku_id}/media/{asset_id}", response_model=ListingOut)
async def delete_media(
    sku_id: str,
    asset_id: str,
    response: Response,
    purge: bool = True,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> ListingOut:
    listing = await pipeline.remove_media(who, sku_id, asset_id, purge_from_store=purge)
    return _with_etag(response, listing_out(listing))


# --- supplier desk ---

@router.get("/defaults")
async def get_defaults(
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> dict:
    return await pipeline.get_supplier_defaults(who)


@router.get("/inbox", response_model=list[SupplierNotificationV1])
async def list_inbox(
    unread_only: bool = False,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> list[SupplierNotificationV1]:
    return await pipeline.list_inbox(who, unread_only=unread_only)


@router.post("/inbox/{sku_id}/read", response_model=SupplierNotificationV1)
async def mark_read(
    sku_id: str,
    who: SupplierIdentity = Depends(get_supplier),
    pipeline: ListingPipeline = Depends(get_pipeline),
) -> SupplierNotificationV1:
    return await pipeline.mark_notification_read(who, sku_id)
