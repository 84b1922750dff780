# catalog_api/api/v1/routers/catalog.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import List, Optional
import logging
import time

from catalog_api.api.deps import catalog_service
from catalog_api.domain.exceptions import StoreFailure
from catalog_api.domain.services.catalog_svc import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["catalog"])
featured_router = APIRouter(tags=["catalog"])


@router.get("/categories", response_model=List[str])
async def get_categories(svc: CatalogService = Depends(catalog_service)):
    """Distinct category labels across all products, first-seen order."""
    try:
        return await svc.get_categories()
    except StoreFailure as e:
        return JSONResponse(status_code=500, content={"message": e.message})


@featured_router.get("/featured-products")
async def get_featured_products(
    min_rating: Optional[str] = Query(None, alias="minRating", description="Minimum averageRating"),
    limit: Optional[str] = Query(None, description="Max number of products"),
    svc: CatalogService = Depends(catalog_service),
):
    t0 = time.perf_counter()
    try:
        items = await svc.get_featured(min_rating, limit)
    except StoreFailure as e:
        return JSONResponse(status_code=500, content={"message": e.message})
    logger.info(
        "Response: featured_products returned %s items (minRating=%s, limit=%s) in %.4fs",
        len(items), min_rating, limit, time.perf_counter() - t0,
    )
    return items
