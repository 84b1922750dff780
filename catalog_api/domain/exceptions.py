"""Catalog errors.

Raised by the catalog service and mapped to HTTP responses by the routers.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInput(CatalogError):
    """Request body has the wrong shape; raised before any store call."""


class InvalidIdentifier(CatalogError):
    """Path identifier cannot be parsed as an ObjectId."""

    def __init__(self, raw_id: str) -> None:
        super().__init__(
            f"'{raw_id}' is not a valid product id",
            details={"id": raw_id},
        )


class NotFound(CatalogError):
    """No product matches the identifier."""

    def __init__(self, product_id: str) -> None:
        super().__init__("Product not found", details={"id": product_id})


class StoreFailure(CatalogError):
    """Any failure reported by the document store, connectivity included."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(str(cause), details={"operation": operation})
        self.operation = operation
        self.cause = cause
