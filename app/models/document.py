from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import Integer

from app.models.base import Base, TimestampMixin


class Document(TimestampMixin, Base):
    """
    One keyed document of the logical store (e.g. tenants/{t}/submissions/{domain}/{sku}).
    """
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_parent", "parent"),
    )

    path: Mapped[str] = mapped_column(String(512), primary_key=True)

    # path minus its last segment; serves child listings (queue, buckets, supplier index)
    parent: Mapped[str] = mapped_column(String(512), nullable=False)

    value: Mapped[Any] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    # bumped on every write; 0 is reserved for "absent"
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
