from __future__ import annotations

from app.canonical.v1.records import AuditEventV1
from app.core.clock import utcnow
from app.core.ids import gen_id
from app.services import paths
from app.services.document_store import DocumentStore, WriteBatch


def audit(
    batch: WriteBatch,
    *,
    domain: str,
    sku_id: str,
    actor: str,
    action: str,
    detail: dict | None = None,
) -> AuditEventV1:
    event = AuditEventV1(id=gen_id("evt"), action=action, actor=actor, at=utcnow(), detail=detail or {})
    batch.set(paths.audit_event(domain, sku_id, event.id), event.model_dump(mode="json"))
    return event


async def list_audit(store: DocumentStore, *, domain: str, sku_id: str) -> list[AuditEventV1]:
    events = [AuditEventV1.model_validate(s.value) for s in (await store.children(paths.audit_trail(domain, sku_id))).values()]
    events.sort(key=lambda e: e.at)
    return events
