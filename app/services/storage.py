from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import quote

from app.core.errors import StorageFailure, ValidationFailed

log = logging.getLogger(__name__)


class LocalObjectStore:
    """
    Filesystem-backed blob store. Keys are relative, "/"-separated paths under base_dir;
    public URLs are `{base_url}/{key}`.
    """

    def __init__(self, base_dir: str, *, base_url: str):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, key: str) -> Path:
        if not key or key.startswith("/") or any(part in ("", ".", "..") for part in key.split("/")):
            raise ValidationFailed(f"Invalid blob key: {key!r}")
        return self.base / key

    def put_bytes(self, *, key: str, data: bytes, content_type: str | None = None) -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageFailure(f"Blob write failed for {key}") from e
        log.debug("blob stored: key=%s bytes=%d content_type=%s", key, len(data), content_type)
        return self.resolve(key)

    def delete(self, key: str) -> None:
        """
        Remove a blob. A missing blob counts as deleted.
        """
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageFailure(f"Blob delete failed for {key}") from e

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def read_bytes(self, key: str) -> bytes:
        try:
            return self._path_for(key).read_bytes()
        except OSError as e:
            raise StorageFailure(f"Blob read failed for {key}") from e

    def resolve(self, key: str) -> str:
        self._path_for(key)
        return f"{self.base_url}/{quote(key)}"
