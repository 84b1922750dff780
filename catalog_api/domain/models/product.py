from pydantic import BaseModel, Field
from typing import Any, Dict, List, Tuple

from catalog_api.domain.services.constants import (
    DEFAULT_FEATURED_LIMIT,
    DEFAULT_FEATURED_MIN_RATING,
    DEFAULT_LIMIT,
)

class QueryOptions(BaseModel):
    """Switches that distinguish the listing variants (one builder, many configs)."""
    default_limit: int = Field(DEFAULT_LIMIT, ge=1)
    enable_category_filter: bool = True
    enable_price_filter: bool = True
    enable_featured_endpoint: bool = True
    featured_min_rating: float = DEFAULT_FEATURED_MIN_RATING
    featured_limit: int = Field(DEFAULT_FEATURED_LIMIT, ge=1)

    model_config = {"frozen": True}  # immuable = safe

    @classmethod
    def from_settings(cls, settings) -> "QueryOptions":
        return cls(
            default_limit=settings.default_page_limit,
            enable_category_filter=settings.enable_category_filter,
            enable_price_filter=settings.enable_price_filter,
            enable_featured_endpoint=settings.enable_featured_endpoint,
            featured_min_rating=settings.featured_min_rating,
            featured_limit=settings.featured_limit,
        )

class ProductQuery(BaseModel):
    """Filter + sort + pagination window for one listing request."""
    filter: Dict[str, Any] = Field(default_factory=dict)
    sort: List[Tuple[str, int]] = Field(default_factory=list)  # empty = natural order
    skip: int = Field(0, ge=0)
    limit: int = Field(DEFAULT_LIMIT, ge=1)
    page: int = Field(1, ge=1)

    model_config = {"frozen": True}  # immuable = safe

class FeaturedQuery(BaseModel):
    filter: Dict[str, Any]
    limit: int = Field(DEFAULT_FEATURED_LIMIT, ge=1)

    model_config = {"frozen": True}
