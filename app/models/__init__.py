from app.models.base import Base  # noqa: F401

from app.models.document import Document  # noqa: F401
