from __future__ import annotations

from app.core.errors import ValidationFailed


def seg(value: str) -> str:
    """
    One path segment. Identifiers are interpolated into store paths and blob keys,
    so they must be non-empty and free of separators.
    """
    s = str(value or "").strip()
    if not s or "/" in s or s in (".", ".."):
        raise ValidationFailed(f"Invalid identifier: {value!r}")
    return s


# --- tenant scoped ---

def tenant_sku_code(tenant_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/sku-code"


def submission(tenant_id: str, domain: str, sku_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/submissions/{seg(domain)}/{seg(sku_id)}"


def supplier_index(tenant_id: str, domain: str, supplier_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/supplier-index/{seg(domain)}/{seg(supplier_id)}"


def supplier_index_entry(tenant_id: str, domain: str, supplier_id: str, sku_id: str) -> str:
    return f"{supplier_index(tenant_id, domain, supplier_id)}/{seg(sku_id)}"


def supplier_defaults(tenant_id: str, domain: str, supplier_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/supplier-defaults/{seg(domain)}/{seg(supplier_id)}"


def counter(tenant_id: str, domain: str, supplier_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/counters/{seg(domain)}/{seg(supplier_id)}"


def inbox(tenant_id: str, domain: str, supplier_id: str) -> str:
    return f"tenants/{seg(tenant_id)}/inbox/{seg(domain)}/{seg(supplier_id)}"


def inbox_entry(tenant_id: str, domain: str, supplier_id: str, sku_id: str) -> str:
    return f"{inbox(tenant_id, domain, supplier_id)}/{seg(sku_id)}"


def unlist_requests(tenant_id: str, domain: str) -> str:
    return f"tenants/{seg(tenant_id)}/requests/{seg(domain)}"


def unlist_request(tenant_id: str, domain: str, sku_id: str) -> str:
    return f"{unlist_requests(tenant_id, domain)}/{seg(sku_id)}"


# --- global ---

def sku_registry(sku_id: str) -> str:
    return f"sku-registry/{seg(sku_id)}"


def admin_queue(domain: str) -> str:
    return f"admin-queue/{seg(domain)}"


def queue_entry(domain: str, sku_id: str) -> str:
    return f"{admin_queue(domain)}/{seg(sku_id)}"


def public_root(domain: str) -> str:
    return f"public/{seg(domain)}"


def publication(domain: str, sku_id: str) -> str:
    return f"{public_root(domain)}/{seg(sku_id)}"


def index_bucket(domain: str, facet: str, value: str) -> str:
    return f"{public_root(domain)}/index/by-{seg(facet)}/{seg(value)}"


def index_entry(domain: str, facet: str, value: str, sku_id: str) -> str:
    return f"{index_bucket(domain, facet, value)}/{seg(sku_id)}"


def audit_trail(domain: str, sku_id: str) -> str:
    return f"audit/{seg(domain)}/{seg(sku_id)}"


def audit_event(domain: str, sku_id: str, event_id: str) -> str:
    return f"{audit_trail(domain, sku_id)}/{seg(event_id)}"
