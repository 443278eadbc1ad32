from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """
    Base class for every failure surfaced by the listing pipeline.

    Carries enough context (sku_id, attempted transition) for callers to build
    a human-readable supplier/admin message. None of these are fatal to the process.
    """
    code = "pipeline_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        sku_id: str | None = None,
        transition: str | None = None,
        detail: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.sku_id = sku_id
        self.transition = transition
        self.detail = detail or []

    def context(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.sku_id:
            out["sku_id"] = self.sku_id
        if self.transition:
            out["transition"] = self.transition
        return out


class NotFound(PipelineError):
    code = "not_found"
    status_code = 404


class AccessDenied(PipelineError):
    code = "access_denied"
    status_code = 403


class ValidationFailed(PipelineError):
    code = "validation_failed"
    status_code = 422


class InvalidTransition(ValidationFailed):
    code = "invalid_transition"
    status_code = 409


class VersionConflict(PipelineError):
    code = "version_conflict"
    status_code = 409


class AllocationConflict(PipelineError):
    code = "allocation_conflict"
    status_code = 503


class StorageFailure(PipelineError):
    code = "storage_failure"
    status_code = 502


class PartialWriteFailure(PipelineError):
    code = "partial_write_failure"
    status_code = 503
