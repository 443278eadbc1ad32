from dataclasses import dataclass
from fastapi import HTTPException, Security
from fastapi.security.api_key import APIKeyHeader

# Identity is resolved upstream (gateway/session layer) and forwarded as headers.
tenant_header = APIKeyHeader(name="X-Tenant-Id", auto_error=False)
supplier_header = APIKeyHeader(name="X-Supplier-Id", auto_error=False)
admin_header = APIKeyHeader(name="X-Admin-Id", auto_error=False)


@dataclass(frozen=True)
class SupplierIdentity:
    tenant_id: str
    supplier_id: str

    @property
    def actor(self) -> str:
        return f"supplier:{self.supplier_id}"


@dataclass(frozen=True)
class AdminIdentity:
    admin_id: str

    @property
    def actor(self) -> str:
        return f"admin:{self.admin_id}"


def get_supplier(
    tenant_id: str | None = Security(tenant_header),
    supplier_id: str | None = Security(supplier_header),
) -> SupplierIdentity:
    if not tenant_id or not supplier_id:
        raise HTTPException(status_code=401, detail="Missing X-Tenant-Id / X-Supplier-Id")
    return SupplierIdentity(tenant_id=tenant_id.strip(), supplier_id=supplier_id.strip())


def get_admin(admin_id: str | None = Security(admin_header)) -> AdminIdentity:
    if not admin_id:
        raise HTTPException(status_code=401, detail="Missing X-Admin-Id")
    return AdminIdentity(admin_id=admin_id.strip())
