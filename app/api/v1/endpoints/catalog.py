from fastapi import APIRouter, Depends

from app.api.v1.deps import get_pipeline
from app.schemas.listing import CatalogItemOut, catalog_item
from app.services.moderation import ListingPipeline

router = APIRouter(prefix="/catalog/{domain}")


@router.get("", response_model=list[CatalogItemOut])
async def list_catalog(pipeline: ListingPipeline = Depends(get_pipeline)) -> list[CatalogItemOut]:
    return [catalog_item(r) for r in await pipeline.list_public()]


@router.get("/by/{facet}/{value}", response_model=list[CatalogItemOut])
async def browse(facet: str, value: str, pipeline: ListingPipeline = Depends(get_pipeline)) -> list[CatalogItemOut]:
    return [catalog_item(r) for r in await pipeline.browse(facet, value)]


@router.get("/{sku_id}", response_model=CatalogItemOut)
async def get_item(sku_id: str, pipeline: ListingPipeline = Depends(get_pipeline)) -> CatalogItemOut:
    return catalog_item(await pipeline.get_public(sku_id))
