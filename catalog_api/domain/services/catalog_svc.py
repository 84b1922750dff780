# catalog_api/domain/services/catalog_svc.py
from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import OperationFailure, PyMongoError

from catalog_api.domain.exceptions import InvalidIdentifier, InvalidInput, NotFound, StoreFailure
from catalog_api.domain.models.product import QueryOptions
from catalog_api.domain.repositories.product_repo import ProductRepo
from catalog_api.domain.services.constants import CATEGORIES_SCAN
from catalog_api.domain.services.query_builder import build_featured_query, build_product_query

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_public(value: Any) -> Any:
    """Make a raw document JSON-friendly: ObjectId -> hex string, recursively."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: to_public(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_public(v) for v in value]
    return value


def collect_categories(docs: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Distinct labels across every document's `categories`, first-seen order.
    Documents without a list there are skipped.
    """
    seen: Dict[str, None] = {}
    for doc in docs:
        cats = doc.get("categories")
        if not isinstance(cats, list):
            continue
        for c in cats:
            if isinstance(c, str) and c not in seen:
                seen[c] = None
    return list(seen)


def parse_object_id(raw_id: str) -> ObjectId:
    try:
        return ObjectId(raw_id)
    except (InvalidId, TypeError):
        raise InvalidIdentifier(raw_id) from None


class CatalogService:
    """
    One instance per request, no state kept between calls.
    Store errors surface as StoreFailure; nothing is retried.
    """

    def __init__(
        self,
        repo: ProductRepo,
        options: QueryOptions = QueryOptions(),
        categories_strategy: str = "aggregate",
        stamp_bulk_created_at: bool = True,
    ):
        self.repo = repo
        self.options = options
        self.categories_strategy = categories_strategy
        self.stamp_bulk_created_at = stamp_bulk_created_at

    # ----- Reads -------------------------------------------------------------

    async def list_products(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        q = build_product_query(params, self.options)
        logger.debug("list_products filter=%s sort=%s skip=%s limit=%s", q.filter, q.sort, q.skip, q.limit)

        try:
            products = await self.repo.find_page(q.filter, q.sort, q.skip, q.limit)
            # not transactional with the page read: a concurrent insert may skew totalPages
            total = await self.repo.count(q.filter)
        except PyMongoError as e:
            logger.error("list_products store failure: %s", e)
            raise StoreFailure("list_products", e) from e

        return {
            "products": to_public(products),
            "totalPages": math.ceil(total / q.limit),
            "currentPage": q.page,
        }

    async def get_categories(self) -> List[str]:
        t0 = time.perf_counter()
        try:
            if self.categories_strategy == CATEGORIES_SCAN:
                cats = await self._scan_categories()
            else:
                try:
                    cats = await self.repo.distinct_categories()
                except OperationFailure as e:
                    logger.warning("categories aggregation rejected, falling back to scan: %s", e)
                    cats = await self._scan_categories()
        except PyMongoError as e:
            logger.error("get_categories store failure: %s", e)
            raise StoreFailure("get_categories", e) from e

        logger.info("get_categories count=%s strategy=%s time=%.3fs",
                    len(cats), self.categories_strategy, time.perf_counter() - t0)
        return cats

    async def _scan_categories(self) -> List[str]:
        # O(products x categories): every document goes through the process
        docs = [doc async for doc in self.repo.scan_categories()]
        return collect_categories(docs)

    async def get_featured(self, min_rating: Any = None, limit: Any = None) -> List[dict]:
        q = build_featured_query(min_rating, limit, self.options)
        try:
            docs = await self.repo.find_featured(q.filter, q.limit)
        except PyMongoError as e:
            logger.error("get_featured store failure: %s", e)
            raise StoreFailure("get_featured", e) from e
        return to_public(docs)

    async def get_product(self, raw_id: str) -> dict:
        oid = parse_object_id(raw_id)
        try:
            doc = await self.repo.find_by_id(oid)
        except PyMongoError as e:
            logger.error("get_product store failure id=%s: %s", raw_id, e)
            raise StoreFailure("get_product", e) from e
        if not doc:
            raise NotFound(raw_id)
        return to_public(doc)

    # ----- Writes ------------------------------------------------------------

    async def create_product(self, fields: Mapping[str, Any]) -> dict:
        """Insert the supplied fields as-is plus a server-side createdAt."""
        doc = dict(fields)
        doc["createdAt"] = _utcnow()
        try:
            doc["_id"] = await self.repo.insert_one(doc)
        except PyMongoError as e:
            logger.error("create_product store failure: %s", e)
            raise StoreFailure("create_product", e) from e
        logger.info("create_product id=%s", doc["_id"])
        return to_public(doc)

    async def bulk_insert(self, body: Any) -> int:
        """
        Insert a list of product objects in one batch; returns the inserted count.
        createdAt is added where missing (when enabled) and never overwritten.
        """
        if not isinstance(body, list):
            raise InvalidInput("Invalid input. Expected an array of products.")
        bad = [i for i, item in enumerate(body) if not isinstance(item, dict)]
        if bad:
            raise InvalidInput(
                "Invalid input. Expected an array of products.",
                details={"invalid_indexes": bad[:20]},
            )
        if not body:
            return 0

        docs = [dict(item) for item in body]
        if self.stamp_bulk_created_at:
            now = _utcnow()
            for doc in docs:
                doc.setdefault("createdAt", now)

        try:
            inserted = await self.repo.insert_many(docs)
        except PyMongoError as e:
            logger.error("bulk_insert store failure size=%s: %s", len(docs), e)
            raise StoreFailure("bulk_insert", e) from e
        logger.info("bulk_insert inserted=%s", inserted)
        return inserted
