from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.canonical.v1.listing import ListingV1
from app.canonical.v1.media import MediaAssetV1
from app.canonical.v1.records import PublicationRecordV1


class ListingOut(ListingV1):
    # store version, also sent as ETag
    version: int


def listing_out(listing: ListingV1) -> ListingOut:
    return ListingOut.model_validate({**listing.model_dump(), "version": listing.version})


class MediaUploadOut(BaseModel):
    asset: MediaAssetV1
    listing: ListingOut


class MediaOrderIn(BaseModel):
    asset_ids: list[str] = Field(min_length=1)


class DeleteOut(BaseModel):
    sku_id: str
    outcome: Literal["DELETED", "UNLIST_REQUESTED", "REMOVED"]


class ApprovalIn(BaseModel):
    margin_pct: float | None = Field(default=None, ge=0, le=1000)
    extra_tags: list[str] = Field(default_factory=list)
    title: str | None = Field(default=None, max_length=200)
    attributes: dict[str, Any] | None = None
    expected_version: int | None = Field(default=None, ge=0)


class ReasonIn(BaseModel):
    # emptiness is checked by the pipeline so it reports the transition
    reason: str = Field(default="", max_length=2000)
    expected_version: int | None = Field(default=None, ge=0)


class SkuCodeIn(BaseModel):
    code: str = Field(min_length=1, max_length=20)


class SkuCodeOut(BaseModel):
    tenant_id: str
    code: str


class CatalogItemOut(BaseModel):
    """
    Public view of a published listing. No supplier or margin data.
    """
    sku_id: str
    domain: str
    title: str | None
    attributes: dict[str, Any]
    tags: list[str]
    media: list[MediaAssetV1]
    cover_url: str
    currency: str
    price: int | None
    price_on_request: bool
    approved_at: datetime


def catalog_item(record: PublicationRecordV1) -> CatalogItemOut:
    return CatalogItemOut(
        sku_id=record.sku_id,
        domain=record.domain,
        title=record.title,
        attributes=record.attributes,
        tags=record.tags,
        media=record.media,
        cover_url=record.cover_url,
        currency=record.currency,
        price=record.display_price,
        price_on_request=record.price_on_request,
        approved_at=record.approved_at,
    )
