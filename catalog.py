"""Catalog query translation: filters, sorting, pagination and derived fields."""
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

LOW_STOCK_LEVEL = 5

SORT_OPTIONS: Dict[str, List[Tuple[str, int]]] = {
    "name": [("name", ASCENDING)],
    "-name": [("name", DESCENDING)],
    "price": [("price", ASCENDING)],
    "-price": [("price", DESCENDING)],
    "rating": [("rating", DESCENDING)],
    "-rating": [("rating", ASCENDING)],
    "newest": [("createdAt", DESCENDING)],
}
DEFAULT_SORT = "name"


def resolve_sort(key: Optional[str]) -> List[Tuple[str, int]]:
    return SORT_OPTIONS.get(key or DEFAULT_SORT, SORT_OPTIONS[DEFAULT_SORT])


def build_product_filter(
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category
    if min_price is not None or max_price is not None:
        query["price"] = {}
        if min_price is not None:
            query["price"]["$gte"] = min_price
        if max_price is not None:
            query["price"]["$lte"] = max_price
    if search and search.strip():
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"brand": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    return query


def paginate(page: int, limit: int, total: int) -> Dict[str, Any]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }


def skip_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def final_price(product: Dict[str, Any]) -> float:
    price = product.get("price") or 0
    sale_price = product.get("salePrice")
    if sale_price and sale_price > 0:
        return sale_price
    discount = product.get("discount") or 0
    if discount > 0:
        return round(price * (1 - discount / 100), 2)
    return price


def discount_percentage(product: Dict[str, Any]) -> float:
    price = product.get("price") or 0
    sale_price = product.get("salePrice")
    if sale_price and sale_price > 0 and price:
        return round((price - sale_price) / price * 100)
    return product.get("discount") or 0


def product_view(product: Dict[str, Any]) -> Dict[str, Any]:
    """Add the derived pricing and stock flags to a serialized product."""
    stock = product.get("stock") or 0
    return {
        **product,
        "finalPrice": final_price(product),
        "discountPercentage": discount_percentage(product),
        "inStock": stock > 0,
        "lowStock": 0 < stock <= LOW_STOCK_LEVEL,
    }


def generate_product_code(category: str, now: datetime) -> str:
    millis = str(int(now.timestamp()) * 1000 + now.microsecond // 1000)
    return f"{category[:3].upper()}-{millis[-6:]}"
