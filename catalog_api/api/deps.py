# catalog_api/api/deps.py
from fastapi import Depends, Request
from catalog_api.core.config import Settings, get_settings
from catalog_api.db.mongo import MongoStore
from catalog_api.domain.models.product import QueryOptions
from catalog_api.domain.repositories.product_repo import ProductRepo
from catalog_api.domain.services.catalog_svc import CatalogService

# Store handle built by the lifespan (see core/lifespan.py)
def get_store(request: Request) -> MongoStore:
    return request.app.state.store

# Dependency for injecting the products repository into endpoints/services
def product_repo(store: MongoStore = Depends(get_store)) -> ProductRepo:
    return ProductRepo(store.products)

def catalog_service(
    repo: ProductRepo = Depends(product_repo),
    settings: Settings = Depends(get_settings),
) -> CatalogService:
    return CatalogService(
        repo,
        options=QueryOptions.from_settings(settings),
        categories_strategy=settings.CATEGORIES_STRATEGY,
        stamp_bulk_created_at=settings.STAMP_BULK_CREATED_AT,
    )
