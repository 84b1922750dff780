# catalog_api/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from typing import Optional
import json
import time

from catalog_api.api.deps import catalog_service
from catalog_api.api.v1.schemas.product import (
    BulkInsertOut,
    ProductCreatedOut,
    ProductIn,
    ProductListOut,
)
from catalog_api.domain.exceptions import (
    InvalidIdentifier,
    InvalidInput,
    NotFound,
    StoreFailure,
)
from catalog_api.domain.services.catalog_svc import CatalogService

import logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


def _store_error(e: StoreFailure) -> dict:
    return {"name": type(e.cause).__name__, "operation": e.operation}


@router.get("/products", response_model=ProductListOut, summary="List products with search, filters, sort and pagination")
async def list_products(
    # raw strings: coercion (and its fallbacks) belongs to the query builder
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    search: Optional[str] = Query(None, description="Case-insensitive text over name, description, categories"),
    category: Optional[str] = Query(None, description="Exact category label"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="'price' or 'createdAt'"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="'asc' or 'desc'"),
    svc: CatalogService = Depends(catalog_service),
):
    params = {
        "page": page,
        "limit": limit,
        "search": search,
        "category": category,
        "minPrice": min_price,
        "maxPrice": max_price,
        "sortBy": sort_by,
        "sortOrder": sort_order,
    }
    logger.info("Request: list_products %s", {k: v for k, v in params.items() if v is not None})

    t0 = time.perf_counter()
    try:
        res = await svc.list_products(params)
    except StoreFailure as e:
        return JSONResponse(status_code=500, content={"message": e.message})

    logger.info(
        "Response: list_products returned %s items (page %s/%s) in %.4fs",
        len(res["products"]), res["currentPage"], res["totalPages"], time.perf_counter() - t0,
    )
    return res


@router.post("/products/bulk-insert", status_code=201, response_model=BulkInsertOut)
async def bulk_insert_products(
    request: Request,
    svc: CatalogService = Depends(catalog_service),
):
    """
    Insert an array of product objects in one batch.
    Body is read raw so that a non-array answers 400 rather than 422.
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None

    try:
        inserted = await svc.bulk_insert(body)
    except InvalidInput as e:
        logger.info("Response: bulk_insert rejected: %s", e.message)
        return JSONResponse(status_code=400, content={"success": False, "message": e.message})
    except StoreFailure as e:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": e.message, "error": _store_error(e)},
        )

    logger.info("Response: bulk_insert inserted=%s", inserted)
    return BulkInsertOut(insertedCount=inserted)


@router.post("/products", status_code=201, response_model=ProductCreatedOut)
async def create_product(
    payload: ProductIn,
    svc: CatalogService = Depends(catalog_service),
):
    try:
        created = await svc.create_product(payload.model_dump(exclude_unset=True))
    except StoreFailure as e:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": e.message, "error": _store_error(e)},
        )
    return ProductCreatedOut(data=created)


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    svc: CatalogService = Depends(catalog_service),
):
    try:
        return await svc.get_product(product_id)
    except NotFound as e:
        return JSONResponse(status_code=404, content={"message": e.message})
    except (InvalidIdentifier, StoreFailure) as e:
        logger.warning("get_product failed id=%s: %s", product_id, e.message)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Internal server error", "error": e.message},
        )
