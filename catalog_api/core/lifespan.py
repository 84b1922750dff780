# catalog_api/core/lifespan.py
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from catalog_api.db.mongo import MongoStore
from catalog_api.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    logger.info("Starting %s env=%s", settings.APP_NAME, settings.APP_ENV)
    store = MongoStore(settings)
    await store.connect()
    app.state.store = store

    # Application runs
    try:
        yield
    finally:
        # --- Shutdown ---
        await store.close()
        app.state.store = None
