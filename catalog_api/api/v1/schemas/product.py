# api/v1/schemas/product.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ProductIn(BaseModel):
    """Body of POST /api/products. Only supplied fields are stored."""
    productName: Optional[str] = None
    productImage: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    categories: Optional[List[str]] = None
    averageRating: Optional[float] = None


class ProductListOut(BaseModel):
    products: List[Dict[str, Any]]
    totalPages: int
    currentPage: int


class ProductCreatedOut(BaseModel):
    success: bool = True
    message: str = "Product created successfully"
    data: Dict[str, Any]


class BulkInsertOut(BaseModel):
    message: str = "Products inserted successfully."
    insertedCount: int = Field(ge=0)
