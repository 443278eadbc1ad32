from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.canonical.v1.media import MediaAssetV1
from app.services.tags import uniq_tags


ListingStatus = Literal["DRAFT", "PENDING", "APPROVED", "REJECTED", "HIDDEN", "SUPPLIER_REVIEW"]

# Statuses a submission record itself can hold. HIDDEN lives on the publication
# record and SUPPLIER_REVIEW on the queue entry.
SUBMISSION_STATUSES: tuple[str, ...] = ("DRAFT", "PENDING", "APPROVED", "REJECTED")

PriceMode = Literal["FLAT", "RATE_TIMES_WEIGHT"]


class PricingV1(BaseModel):
    """
    Supplier-entered cost inputs. Public price is never taken from here directly.
    """
    price_mode: PriceMode = "FLAT"
    currency: str = Field(default="INR", min_length=3, max_length=3)

    # FLAT
    offer_price: float | None = Field(default=None, ge=0)
    mrp: float | None = Field(default=None, ge=0)

    # RATE_TIMES_WEIGHT
    rate_per_unit: float | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, ge=0)
    weight_unit: Literal["g", "ct"] = "g"

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


class ListingDraftV1(BaseModel):
    """
    What a supplier may write. Status, prices and moderation fields are not part of it.
    """
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    attributes: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    media: list[MediaAssetV1] | None = Field(
        default=None,
        description="Full replacement of the media list; omitted keeps the stored list.",
    )
    pricing: PricingV1 = Field(default_factory=PricingV1)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return uniq_tags(v)


class ListingV1(BaseModel):
    """
    Canonical listing record, keyed by (tenant, sku) within one product domain.
    """
    sku_id: str = Field(min_length=1, max_length=80)
    domain: str = Field(min_length=1, max_length=40)
    tenant_id: str = Field(min_length=1, max_length=80)
    supplier_id: str = Field(min_length=1, max_length=128)

    status: ListingStatus = "DRAFT"

    title: str | None = Field(default=None, max_length=200)
    attributes: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    media: list[MediaAssetV1] = Field(default_factory=list)

    pricing: PricingV1 = Field(default_factory=PricingV1)

    # Written only by moderation; recomputed on every approval
    admin_margin_pct: float | None = None
    base_price: int | None = None
    public_price: int | None = None
    price_source: str | None = None

    rejection_reason: str | None = Field(default=None, max_length=2000)

    created_at: datetime
    updated_at: datetime
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejected_at: datetime | None = None
    rejected_by: str | None = None
    review_requested_at: datetime | None = None
    review_requested_by: str | None = None

    # store version of the record; not part of the stored payload
    version: int = Field(default=0, exclude=True)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return uniq_tags(v)

    @model_validator(mode="after")
    def normalize_and_validate(self) -> "ListingV1":
        if self.status not in SUBMISSION_STATUSES:
            raise ValueError(f"submission records cannot hold status {self.status}")

        # public price exists exactly while approved
        if self.status == "APPROVED" and self.public_price is None:
            raise ValueError("approved listing requires public_price")
        if self.status != "APPROVED" and self.public_price is not None:
            raise ValueError("public_price is only set on approved listings")

        # Stable ordering for storage and diffs
        self.media.sort(key=lambda m: (m.kind, m.order, m.created_at))
        return self

    def cover_url(self) -> str:
        images = [m for m in self.media if m.kind == "IMG"]
        images.sort(key=lambda m: m.order)
        return images[0].url if images else ""

    def evolve(self, **changes: Any) -> "ListingV1":
        """
        Copy with changes applied, re-running validation (model_copy would skip it).
        """
        data = {**self.model_dump(), "version": self.version, **changes}
        return type(self).model_validate(data)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
