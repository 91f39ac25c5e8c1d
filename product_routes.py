from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, Query
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from catalog import LOW_STOCK_LEVEL, build_product_filter, generate_product_code, paginate, product_view, resolve_sort, skip_for
from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import Conflict, NotFound, ValidationError
from logging_config import get_logger
from schemas import Product, ProductCategory, ProductUpdate
from security import Identity, catalog_writer

logger = get_logger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def view(doc: Dict[str, Any]) -> Dict[str, Any]:
    return product_view(serialize_doc(doc))


def load_product(db: Database, product_id: str) -> Dict[str, Any]:
    product = db["product"].find_one({"_id": parse_object_id(product_id, "product")})
    if not product:
        raise NotFound("Product not found", reason="product_not_found")
    return product


@router.get("")
def list_products(
    category: Optional[ProductCategory] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    search: Optional[str] = None,
    sort: Optional[str] = "name",
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = build_product_filter(category.value if category else None, min_price, max_price, search)
    products = get_documents(db, "product", query, sort=resolve_sort(sort), skip=skip_for(page, limit), limit=limit)
    total = db["product"].count_documents(query)

    price_range = list(
        db["product"].aggregate([{"$group": {"_id": None, "min": {"$min": "$price"}, "max": {"$max": "$price"}}}])
    )
    return {
        "success": True,
        "data": [view(p) for p in products],
        "pagination": paginate(page, limit, total),
        "filters": {
            "categories": sorted(db["product"].distinct("category")),
            "priceRange": {k: v for k, v in price_range[0].items() if k != "_id"} if price_range else {"min": None, "max": None},
        },
    }


@router.get("/stats/summary")
def product_summary(db: Database = Depends(get_db)):
    stats = list(
        db["product"].aggregate(
            [
                {
                    "$group": {
                        "_id": None,
                        "totalProducts": {"$sum": 1},
                        "totalValue": {"$sum": {"$multiply": ["$price", "$stock"]}},
                        "totalStock": {"$sum": "$stock"},
                        "avgPrice": {"$avg": "$price"},
                        "avgRating": {"$avg": "$rating"},
                        "categories": {"$addToSet": "$category"},
                    }
                }
            ]
        )
    )
    data = {"totalProducts": 0, "totalValue": 0, "totalStock": 0, "avgPrice": 0, "avgRating": 0, "categoryCount": 0}
    if stats:
        row = stats[0]
        data = {
            "totalProducts": row["totalProducts"],
            "totalValue": round(row["totalValue"] or 0, 2),
            "totalStock": row["totalStock"],
            "avgPrice": round(row["avgPrice"] or 0, 2),
            "avgRating": round(row["avgRating"] or 0, 2),
            "categoryCount": len(row["categories"]),
        }

    low_stock = get_documents(
        db, "product", {"stock": {"$lt": LOW_STOCK_LEVEL}}, sort=[("stock", ASCENDING)], limit=5
    )
    return {
        "success": True,
        "data": data,
        "lowStock": [
            {k: v for k, v in serialize_doc(p).items() if k in ("id", "name", "stock", "price")} for p in low_stock
        ],
    }


@router.get("/category/{category}")
def products_by_category(category: str, db: Database = Depends(get_db)):
    products = get_documents(db, "product", {"category": category}, sort=[("name", ASCENDING)])
    return {
        "success": True,
        "data": [view(p) for p in products],
        "category": category,
        "count": len(products),
    }


@router.get("/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return {"success": True, "data": view(load_product(db, product_id))}


@router.post("", status_code=201)
def create_product(
    body: Product,
    writer: Optional[Identity] = Depends(catalog_writer),
    db: Database = Depends(get_db),
):
    if body.code and db["product"].find_one({"code": body.code}):
        raise Conflict("Product with this code already exists", reason="product_code_taken")

    product = body if body.code else body.model_copy(update={"code": generate_product_code(body.category, utcnow())})
    try:
        product_id = create_document(db, "product", product)
    except DuplicateKeyError:
        raise Conflict("Product with this code already exists", reason="product_code_taken")

    logger.info("product_created", product_id=product_id, code=product.code, by=writer.user_id if writer else None)
    return {
        "success": True,
        "message": "Product created successfully",
        "data": view(db["product"].find_one({"_id": ObjectId(product_id)})),
    }


@router.put("/{product_id}")
def update_product(
    product_id: str,
    body: ProductUpdate,
    writer: Optional[Identity] = Depends(catalog_writer),
    db: Database = Depends(get_db),
):
    existing = load_product(db, product_id)
    updates = body.model_dump(by_alias=True, exclude_none=True)
    if not updates:
        raise ValidationError("No updates provided", reason="empty_update")

    price = updates.get("price", existing.get("price"))
    sale_price = updates.get("salePrice", existing.get("salePrice"))
    if sale_price is not None and price is not None and sale_price > price:
        raise ValidationError("Sale price cannot exceed regular price", reason="sale_price_invalid")

    updates["updatedAt"] = utcnow()
    updated = db["product"].find_one_and_update(
        {"_id": existing["_id"]}, {"$set": updates}, return_document=ReturnDocument.AFTER
    )
    if updated is None:
        raise NotFound("Product not found", reason="product_not_found")
    logger.info("product_updated", product_id=product_id, fields=sorted(updates), by=writer.user_id if writer else None)
    return {"success": True, "message": "Product updated successfully", "data": view(updated)}


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    writer: Optional[Identity] = Depends(catalog_writer),
    db: Database = Depends(get_db),
):
    result = db["product"].delete_one({"_id": parse_object_id(product_id, "product")})
    if result.deleted_count == 0:
        raise NotFound("Product not found", reason="product_not_found")
    logger.info("product_deleted", product_id=product_id, by=writer.user_id if writer else None)
    return {"success": True, "message": "Product deleted successfully"}
