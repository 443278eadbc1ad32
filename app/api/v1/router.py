from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.supplier import router as supplier_router
from app.api.v1.endpoints.admin import router as admin_router
from app.api.v1.endpoints.catalog import router as catalog_router


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(supplier_router, tags=["supplier"])
router.include_router(admin_router, tags=["admin"])
router.include_router(catalog_router, tags=["catalog"])
