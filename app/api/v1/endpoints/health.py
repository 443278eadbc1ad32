from fastapi import APIRouter

from app.core.config import settings
from app.domains.registry import supported_domains

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": settings.service_name, "domains": supported_domains()}
