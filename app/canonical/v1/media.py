from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


MediaKind = Literal["IMG", "VID", "CERT"]

MEDIA_KINDS: tuple[MediaKind, ...] = ("IMG", "VID", "CERT")

# blob-store folder per kind
MEDIA_FOLDERS: dict[str, str] = {
    "IMG": "images",
    "VID": "videos",
    "CERT": "certificates",
}


class MediaAssetV1(BaseModel):
    """
    One uploaded file attached to a listing.

    `order` is 0-based and unique within its kind; the IMG with order 0 is the cover.
    `updated_at` only ever moves forward so URL consumers can bust caches.
    """
    id: str = Field(min_length=1, max_length=200)
    kind: MediaKind = "IMG"
    storage_ref: str = Field(min_length=1, max_length=512, description="Blob-store key.")
    url: str = Field(min_length=1, max_length=2048)
    order: int = Field(default=0, ge=0)

    # Optional metadata
    content_type: str | None = Field(default=None, max_length=100)
    size_bytes: int | None = Field(default=None, ge=0)

    created_at: datetime
    updated_at: datetime
