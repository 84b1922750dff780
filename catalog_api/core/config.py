from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]
CategoriesStrategy = Literal["aggregate", "scan"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "ProductCatalog"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"
    PORT: int = 5000

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "productdb"
    MONGO_COLLECTION: str = "products"
    MONGO_TLS: Optional[bool] = None           # None => inferred from mongodb+srv://
    mongo_timeout_ms: int = 6000

    # CORS (CSV, empty => any origin)
    ALLOWED_ORIGINS: str = ""

    # API
    api_prefix: str = "/api"

    # Listing
    default_page_limit: int = 10
    enable_category_filter: bool = True
    enable_price_filter: bool = True

    # Featured products
    enable_featured_endpoint: bool = True
    featured_min_rating: float = 4.0
    featured_limit: int = 10

    # Categories: store-side aggregation, or full scan in process
    CATEGORIES_STRATEGY: CategoriesStrategy = "aggregate"

    # Bulk insert stamps createdAt on documents that lack it
    STAMP_BULK_CREATED_AT: bool = True

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def mongo_tls(self) -> bool:
        if self.MONGO_TLS is not None:
            return self.MONGO_TLS
        return self.MONGO_URI.startswith("mongodb+srv://")

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
