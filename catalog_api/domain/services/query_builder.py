# catalog_api/domain/services/query_builder.py
"""
Query-string -> Mongo query translation for the product listing.

Everything here is pure: raw (stringly-typed) parameters in, a ProductQuery
(filter, sort, skip/limit) out. No I/O, no logging of request data.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from catalog_api.domain.models.product import FeaturedQuery, ProductQuery, QueryOptions
from catalog_api.domain.services.constants import (
    ASCENDING,
    DEFAULT_PAGE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_ORDER,
    DESCENDING,
    INT64_MAX,
    SEARCH_FIELDS,
    SORTABLE_FIELDS,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def coerce_int(value: Any, default: int) -> int:
    """
    Integer coercion that never raises: "3" -> 3, "2.7" -> 2, "abc" -> default.
    """
    if _is_blank(value) or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        pass
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return default


def coerce_float(value: Any) -> Optional[float]:
    """Float coercion; None when absent or not a number (NaN included)."""
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        f = float(str(value).strip())
    except ValueError:
        return None
    return None if math.isnan(f) else f


def _contains_ci(text: str) -> Dict[str, str]:
    # literal, case-insensitive substring
    return {"$regex": re.escape(text), "$options": "i"}


def build_filter(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = 0,
    max_price: Optional[float] = None,
    options: QueryOptions = QueryOptions(),
) -> Dict[str, Any]:
    """
    Compose the listing filter. Active clauses are ANDed at the top level.

    Price range is applied only when both bounds are truthy, so minPrice=0
    leaves price unconstrained even with a maxPrice (known quirk).
    """
    query: Dict[str, Any] = {}

    if search:
        query["$or"] = [{field: _contains_ci(search)} for field in SEARCH_FIELDS]

    if category and options.enable_category_filter:
        # matches when `category` is one of the array elements
        query["categories"] = category

    if options.enable_price_filter and min_price and max_price:
        query["price"] = {"$gte": min_price, "$lte": max_price}

    return query


def build_sort(sort_by: Optional[str], sort_order: Optional[str]) -> List[Tuple[str, int]]:
    sort_by = DEFAULT_SORT_BY if _is_blank(sort_by) else sort_by
    sort_order = DEFAULT_SORT_ORDER if _is_blank(sort_order) else sort_order
    if sort_by not in SORTABLE_FIELDS:
        return []
    return [(sort_by, ASCENDING if sort_order == "asc" else DESCENDING)]


def build_pagination(page: Any, limit: Any, default_limit: int) -> Tuple[int, int, int]:
    """
    Return (page, skip, limit); page < 1 -> 1, limit < 1 -> default_limit.
    limit and page are clamped so that skip fits in an int64.
    """
    page_n = coerce_int(page, DEFAULT_PAGE)
    limit_n = coerce_int(limit, default_limit)
    if page_n < 1:
        page_n = DEFAULT_PAGE
    if limit_n < 1:
        limit_n = default_limit
    limit_n = min(limit_n, INT64_MAX)
    page_n = min(page_n, INT64_MAX // limit_n + 1)
    return page_n, (page_n - 1) * limit_n, limit_n


def build_product_query(
    params: Mapping[str, Any],
    options: QueryOptions = QueryOptions(),
) -> ProductQuery:
    """
    Translate listing query parameters (page, limit, search, category,
    minPrice, maxPrice, sortBy, sortOrder) into a ProductQuery.
    """
    min_price = coerce_float(params.get("minPrice"))
    page, skip, limit = build_pagination(params.get("page"), params.get("limit"), options.default_limit)

    return ProductQuery(
        filter=build_filter(
            search=params.get("search") or "",
            category=params.get("category") or "",
            min_price=0 if min_price is None else min_price,
            max_price=coerce_float(params.get("maxPrice")),
            options=options,
        ),
        sort=build_sort(params.get("sortBy"), params.get("sortOrder")),
        skip=skip,
        limit=limit,
        page=page,
    )


def build_featured_query(
    min_rating: Any = None,
    limit: Any = None,
    options: QueryOptions = QueryOptions(),
) -> FeaturedQuery:
    rating = coerce_float(min_rating)
    if rating is None:
        rating = options.featured_min_rating
    limit_n = coerce_int(limit, options.featured_limit)
    if limit_n < 1:
        limit_n = options.featured_limit
    limit_n = min(limit_n, INT64_MAX)
    return FeaturedQuery(filter={"averageRating": {"$gte": rating}}, limit=limit_n)
