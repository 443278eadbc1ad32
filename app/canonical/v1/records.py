from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.canonical.v1.media import MediaAssetV1


QueueStatus = Literal["PENDING", "SUPPLIER_REVIEW"]
PublicationStatus = Literal["APPROVED", "HIDDEN"]


class QueueEntryV1(BaseModel):
    """
    Admin-facing mirror of a pending listing. Exists exactly while the submission is PENDING.
    """
    sku_id: str
    domain: str
    tenant_id: str
    supplier_id: str

    # SUPPLIER_REVIEW: admin sent a published listing back and waits for the supplier
    status: QueueStatus = "PENDING"
    reason: str | None = None

    title: str | None = None
    thumb_url: str = ""

    queued_at: datetime
    updated_at: datetime


class PublicationRecordV1(BaseModel):
    """
    Public catalog projection of an approved listing.
    Carries no supplier cost inputs.
    """
    sku_id: str
    domain: str
    tenant_id: str
    supplier_id: str

    status: PublicationStatus = "APPROVED"
    visible: bool = True

    title: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    media: list[MediaAssetV1] = Field(default_factory=list)
    cover_url: str = ""

    currency: str = "INR"
    public_price: int = 0
    price_on_request: bool = False
    price_source: str | None = None
    margin_pct: float | None = None

    approved_at: datetime
    approved_by: str
    hidden_at: datetime | None = None
    hidden_by: str | None = None
    updated_at: datetime

    # facet keys ("tag/red", "category/MALA") written at the last publish
    indexed: list[str] = Field(default_factory=list)

    @property
    def display_price(self) -> int | None:
        # 0 means "price on request", never a literal zero price
        return self.public_price if self.public_price > 0 else None


class SupplierNotificationV1(BaseModel):
    sku_id: str
    domain: str
    tenant_id: str
    supplier_id: str
    status: Literal["SUPPLIER_REVIEW"] = "SUPPLIER_REVIEW"
    reason: str
    read: bool = False
    created_by: str
    created_at: datetime
    read_at: datetime | None = None


class UnlistRequestV1(BaseModel):
    sku_id: str
    domain: str
    tenant_id: str
    supplier_id: str
    action: Literal["UNLIST"] = "UNLIST"
    reason: str = "SUPPLIER_DELETE_REQUEST"
    created_at: datetime


class SkuRegistrationV1(BaseModel):
    sku_id: str
    domain: str
    tenant_id: str
    supplier_id: str
    serial: int
    allocated_at: datetime


class AuditEventV1(BaseModel):
    id: str
    action: str
    actor: str
    at: datetime
    detail: dict[str, Any] = Field(default_factory=dict)
