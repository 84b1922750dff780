from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
import logging

from catalog_api.core.config import get_settings
from catalog_api.core.lifespan import lifespan
from catalog_api.core.logging import configure_logging
from catalog_api.domain.models.product import QueryOptions
from catalog_api.api.v1.routers.products import router as products_router
from catalog_api.api.v1.routers.catalog import router as catalog_router, featured_router
from catalog_api.api.v1.routers.health import router as health_router

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS="https://shop.example.com,https://admin.example.com"
# empty => any origin (credentials stay off so "*" is allowed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
def include_routes(target: FastAPI, prefix: str, options: QueryOptions) -> None:
    target.include_router(health_router)
    target.include_router(products_router, prefix=prefix)
    target.include_router(catalog_router, prefix=prefix)
    if options.enable_featured_endpoint:
        target.include_router(featured_router, prefix=prefix)


include_routes(app, settings.api_prefix, QueryOptions.from_settings(settings))


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Hello World!"


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("catalog_api.main:app", host="0.0.0.0", port=settings.PORT)
