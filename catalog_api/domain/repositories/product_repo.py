# catalog_api/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection

class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Raw documents in, raw documents out; driver errors propagate to the caller.
    """

    # distinct labels of the `categories` array, ordered by (oldest _id, array position)
    # of their first occurrence; non-array `categories` values are skipped
    CATEGORIES_PIPELINE: List[Dict[str, Any]] = [
        {"$match": {"categories": {"$type": "array"}}},
        {"$project": {"_id": 1, "categories": 1}},
        {"$unwind": {"path": "$categories", "includeArrayIndex": "pos"}},
        {"$match": {"categories": {"$type": "string"}}},
        {"$group": {"_id": "$categories", "first_seen": {"$min": {"id": "$_id", "pos": "$pos"}}}},
        {"$sort": {"first_seen": 1}},
        {"$project": {"_id": 0, "category": "$_id"}},
    ]

    def __init__(self, col: AsyncIOMotorCollection):
        self.col = col

    # ----- Reads -------------------------------------------------------------

    async def find_page(
        self,
        flt: Dict[str, Any],
        sort: List[Tuple[str, int]],
        skip: int,
        limit: int,
    ) -> List[dict]:
        cursor = self.col.find(flt)
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def count(self, flt: Dict[str, Any]) -> int:
        return await self.col.count_documents(flt)

    async def find_by_id(self, oid: ObjectId) -> Optional[dict]:
        return await self.col.find_one({"_id": oid})

    async def find_featured(self, flt: Dict[str, Any], limit: int) -> List[dict]:
        cursor = self.col.find(flt).limit(limit)
        return await cursor.to_list(length=limit)

    async def distinct_categories(self) -> List[str]:
        """Store-side aggregation; may raise OperationFailure on stores without $unwind/$group."""
        cursor = self.col.aggregate(self.CATEGORIES_PIPELINE)
        return [doc["category"] async for doc in cursor]

    async def scan_categories(self) -> AsyncIterator[dict]:
        """Full-collection cursor projecting only `categories`, in natural order."""
        cursor = self.col.find({}, {"_id": 0, "categories": 1})
        try:
            async for doc in cursor:
                yield doc
        finally:
            await cursor.close()

    # ----- Writes ------------------------------------------------------------

    async def insert_one(self, doc: dict) -> ObjectId:
        res = await self.col.insert_one(doc)
        return res.inserted_id

    async def insert_many(self, docs: List[dict]) -> int:
        res = await self.col.insert_many(docs, ordered=True)
        return len(res.inserted_ids)
