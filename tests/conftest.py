"""Shared fixtures: an in-memory products collection and a wired TestClient."""

import copy
import re
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from catalog_api.api.deps import product_repo
from catalog_api.domain.repositories.product_repo import ProductRepo
from catalog_api.main import app


# ============================================================================
# In-memory collection
# ============================================================================


_MISSING = object()


def _values(doc: dict, field: str) -> list:
    """Values a field contributes to matching: array elements, or the scalar."""
    value = doc.get(field, _MISSING)
    if value is _MISSING:
        return []
    return list(value) if isinstance(value, list) else [value]


def _match_condition(doc: dict, field: str, cond: Any) -> bool:
    if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
        values = _values(doc, field)
        for op, arg in cond.items():
            if op == "$regex":
                flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                if not any(isinstance(v, str) and re.search(arg, v, flags) for v in values):
                    return False
            elif op == "$options":
                continue
            elif op == "$gte":
                if not any(isinstance(v, (int, float)) and v >= arg for v in values):
                    return False
            elif op == "$lte":
                if not any(isinstance(v, (int, float)) and v <= arg for v in values):
                    return False
            elif op == "$type":
                raw = doc.get(field)
                if arg == "array" and not isinstance(raw, list):
                    return False
                if arg == "string" and not isinstance(raw, str):
                    return False
            else:
                raise NotImplementedError(op)
        return True
    return cond in _values(doc, field)


def matches(doc: dict, flt: dict) -> bool:
    for key, cond in flt.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, sub) for sub in cond):
                return False
        elif not _match_condition(doc, key, cond):
            return False
    return True


def _eval(doc: dict, expr: Any) -> Any:
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict):
        return {k: _eval(doc, v) for k, v in expr.items()}
    return expr


def _order_key(value: Any) -> Any:
    # embedded documents compare field by field
    if isinstance(value, dict):
        return tuple(_order_key(v) for v in value.values())
    return value


def run_pipeline(docs: list[dict], pipeline: list[dict]) -> list[dict]:
    """Evaluate the aggregation stages ProductRepo issues."""
    for stage in pipeline:
        (op, spec), = stage.items()
        if op == "$match":
            docs = [d for d in docs if matches(d, spec)]
        elif op == "$project":
            out = []
            for d in docs:
                row = {"_id": d.get("_id")} if spec.get("_id", 1) == 1 else {}
                for k, v in spec.items():
                    if k == "_id" and v in (0, 1):
                        continue
                    if v == 1:
                        if k in d:
                            row[k] = d[k]
                    else:
                        row[k] = _eval(d, v)
                out.append(row)
            docs = out
        elif op == "$unwind":
            if isinstance(spec, str):
                spec = {"path": spec}
            field = spec["path"][1:]
            index_name = spec.get("includeArrayIndex")
            out = []
            for d in docs:
                value = d.get(field)
                if value is None or value == []:
                    continue
                # a scalar unwinds as a single element with a null index
                items = list(enumerate(value)) if isinstance(value, list) else [(None, value)]
                for pos, item in items:
                    row = {**d, field: item}
                    if index_name:
                        row[index_name] = pos
                    out.append(row)
            docs = out
        elif op == "$group":
            groups: dict = {}
            for d in docs:
                key = _eval(d, spec["_id"])
                acc = groups.setdefault(key, {"_id": key})
                for name, accumulator in spec.items():
                    if name == "_id":
                        continue
                    (acc_op, acc_expr), = accumulator.items()
                    if acc_op != "$min":
                        raise NotImplementedError(acc_op)
                    value = _eval(d, acc_expr)
                    if name not in acc or _order_key(value) < _order_key(acc[name]):
                        acc[name] = value
            docs = list(groups.values())
        elif op == "$sort":
            # ties come back in reverse input order: the server gives no stable order
            for field, direction in reversed(list(spec.items())):
                docs = sorted(reversed(docs), key=lambda d: _order_key(d.get(field)), reverse=direction < 0)
        else:
            raise NotImplementedError(op)
    return docs


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs
        self._skip = 0
        self._limit = 0
        self.closed = False

    def sort(self, keys):
        for field, direction in reversed(list(keys)):
            self._docs.sort(key=lambda d: d.get(field), reverse=direction < 0)
        return self

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def _window(self) -> list[dict]:
        docs = self._docs[self._skip:]
        return docs[: self._limit] if self._limit else docs

    async def to_list(self, length=None):
        docs = self._window()
        return docs[:length] if length else docs

    def __aiter__(self):
        self._iter = iter(self._window())
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration

    async def close(self):
        self.closed = True


class FakeCollection:
    """
    Just enough of AsyncIOMotorCollection for ProductRepo.
    With supports_aggregate=False, aggregation is rejected like a store
    without $unwind support.
    """

    def __init__(self, docs: list[dict] | None = None, supports_aggregate: bool = True):
        self.docs: list[dict] = []
        self.calls: list[str] = []
        self.supports_aggregate = supports_aggregate
        for d in docs or []:
            self._store(d)

    def _store(self, doc: dict) -> ObjectId:
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return doc["_id"]

    def find(self, flt=None, projection=None):
        self.calls.append("find")
        found = [copy.deepcopy(d) for d in self.docs if matches(d, flt or {})]
        if projection:
            keep = {k for k, v in projection.items() if v}
            found = [
                {k: v for k, v in d.items() if k in keep or (k == "_id" and projection.get("_id", 1))}
                for d in found
            ]
        return FakeCursor(found)

    async def count_documents(self, flt):
        self.calls.append("count_documents")
        return sum(1 for d in self.docs if matches(d, flt))

    async def find_one(self, flt):
        self.calls.append("find_one")
        for d in self.docs:
            if matches(d, flt):
                return copy.deepcopy(d)
        return None

    async def insert_one(self, doc):
        self.calls.append("insert_one")
        return SimpleNamespace(inserted_id=self._store(doc))

    async def insert_many(self, docs, ordered=True):
        self.calls.append("insert_many")
        return SimpleNamespace(inserted_ids=[self._store(d) for d in docs])

    def aggregate(self, pipeline):
        self.calls.append("aggregate")
        if not self.supports_aggregate:
            raise OperationFailure("Unrecognized pipeline stage name: '$unwind'")
        return FakeCursor(run_pipeline(copy.deepcopy(self.docs), pipeline))


class BrokenCollection(FakeCollection):
    """Every call fails as if the server were unreachable."""

    def _down(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("localhost:27017: connection refused")

    find = _down
    aggregate = _down

    async def count_documents(self, flt):
        self._down()

    async def find_one(self, flt):
        self._down()

    async def insert_one(self, doc):
        self._down()

    async def insert_many(self, docs, ordered=True):
        self._down()


# ============================================================================
# Sample data
# ============================================================================


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_product(i: int, **overrides) -> dict:
    doc = {
        "productName": f"Product {i}",
        "description": f"Description for product {i}",
        "categories": ["misc"],
        "price": float(10 + i),
        "averageRating": 3.0,
        "productImage": f"https://img.example.com/{i}.png",
        "createdAt": BASE_TIME + timedelta(minutes=i),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def catalog_docs() -> list[dict]:
    """25 products, 12 of them in 'books'."""
    return [
        make_product(i, categories=["books", "paper"] if i < 12 else ["toys"])
        for i in range(25)
    ]


@pytest.fixture
def collection(catalog_docs) -> FakeCollection:
    return FakeCollection(catalog_docs)


@pytest.fixture
def repo(collection) -> ProductRepo:
    return ProductRepo(collection)


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def client(collection):
    """TestClient wired to the in-memory collection (lifespan not started)."""
    app.dependency_overrides[product_repo] = lambda: ProductRepo(collection)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def broken_client():
    app.dependency_overrides[product_repo] = lambda: ProductRepo(BrokenCollection())
    yield TestClient(app)
    app.dependency_overrides.clear()
