from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.canonical.v1.records import SkuRegistrationV1
from app.core.clock import utcnow
from app.core.errors import AllocationConflict, ValidationFailed
from app.services import paths
from app.services.document_store import DocumentStore, WriteBatch
from app.services.retry import contention_backoff_seconds

log = logging.getLogger(__name__)


def format_sku(prefix: str, tenant_code: str, serial: int, width: int) -> str:
    return f"{prefix}{tenant_code}{serial:0{width}d}"


def _last_serial(value: Any) -> int:
    if isinstance(value, dict):
        return int(value.get("last") or 0)
    return 0


class SkuAllocator:
    """
    Per-(tenant, domain, supplier) counter advanced by compare-and-set, plus a
    global create-if-absent claim on the resulting SKU.

    A serial whose SKU is already registered elsewhere is skipped and logged;
    that is the only way a serial goes unused.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        serial_width: int = 3,
        max_attempts: int = 25,
        backoff_base_ms: int = 5,
        backoff_cap_ms: int = 200,
    ):
        self.store = store
        self.serial_width = serial_width
        self.max_attempts = max_attempts
        self.backoff_base_ms = backoff_base_ms
        self.backoff_cap_ms = backoff_cap_ms

    async def tenant_code(self, tenant_id: str) -> str:
        value = await self.store.get_value(paths.tenant_sku_code(tenant_id))
        code = (value or {}).get("code") if isinstance(value, dict) else None
        if not code:
            raise ValidationFailed(f"Tenant {tenant_id} has no SKU code configured")
        return code

    async def allocate(self, *, tenant_id: str, supplier_id: str, domain: str, sku_prefix: str) -> str:
        """
        Only lost counter writes count against max_attempts. A serial already
        registered by another supplier is skipped without spending the budget;
        there are at most as many of those as registered SKUs.
        """
        code = await self.tenant_code(tenant_id)
        counter_path = paths.counter(tenant_id, domain, supplier_id)
        conflicts = 0
        skipped = 0

        while True:
            snap = await self.store.get(counter_path)
            version = snap.version if snap else 0
            serial = _last_serial(snap.value if snap else None) + 1

            advanced = await self.store.compare_and_set(
                counter_path, version, {"last": serial, "updated_at": utcnow().isoformat()}
            )
            if not advanced:
                conflicts += 1
                if conflicts >= self.max_attempts:
                    raise AllocationConflict(
                        f"SKU allocation for supplier {supplier_id} did not commit after {self.max_attempts} attempts"
                    )
                await asyncio.sleep(contention_backoff_seconds(conflicts, self.backoff_base_ms, self.backoff_cap_ms))
                continue

            sku_id = format_sku(sku_prefix, code, serial, self.serial_width)
            registration = SkuRegistrationV1(
                sku_id=sku_id,
                domain=domain,
                tenant_id=tenant_id,
                supplier_id=supplier_id,
                serial=serial,
                allocated_at=utcnow(),
            )
            if await self.store.compare_and_set(paths.sku_registry(sku_id), 0, registration.model_dump(mode="json")):
                log.info(
                    "sku allocated: sku=%s tenant=%s supplier=%s conflicts=%d skipped=%d",
                    sku_id, tenant_id, supplier_id, conflicts, skipped,
                )
                return sku_id

            skipped += 1
            log.warning("sku already registered, skipping serial: sku=%s tenant=%s supplier=%s", sku_id, tenant_id, supplier_id)

    async def lookup(self, sku_id: str) -> SkuRegistrationV1 | None:
        value = await self.store.get_value(paths.sku_registry(sku_id))
        return SkuRegistrationV1.model_validate(value) if value else None

    async def set_tenant_code(self, tenant_id: str, code: str, *, actor: str) -> str:
        code = (code or "").strip().upper()
        if not code or not code.isalnum():
            raise ValidationFailed(f"Invalid SKU code: {code!r}")
        path = paths.tenant_sku_code(tenant_id)
        await self.store.apply(
            WriteBatch().set(path, {"code": code, "updated_at": utcnow().isoformat(), "updated_by": actor}),
            transition="set_tenant_sku_code",
        )
        log.info("tenant sku code set: tenant=%s code=%s actor=%s", tenant_id, code, actor)
        return code
