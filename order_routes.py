from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, Query
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from catalog import paginate, skip_for
from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import Conflict, NotFound, ValidationError
from logging_config import get_logger
from orders import build_order, check_transition, estimated_delivery, order_number
from schemas import OrderStatus, OrderStatusUpdate
from security import Identity, OwnerOf, authorize, require_admin, require_user
from validation import validate_order_payload

logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def order_view(order: Dict[str, Any]) -> Dict[str, Any]:
    view = serialize_doc(order)
    view["orderNumber"] = order_number(view["id"])
    return view


def load_order(db: Database, order_id: str) -> Dict[str, Any]:
    oid = parse_object_id(order_id, "order")
    order = db["order"].find_one({"_id": oid})
    if not order:
        raise NotFound("Order not found", reason="order_not_found")
    return order


@router.post("", status_code=201)
def create_order(
    payload: Optional[Dict[str, Any]] = Body(None),
    identity: Identity = Depends(require_user),
    db: Database = Depends(get_db),
):
    draft = validate_order_payload(payload).unwrap()

    # Owner always comes from the token, never from the payload
    doc = build_order(draft, identity.user_id)
    order_id = create_document(db, "order", doc)
    order = db["order"].find_one({"_id": ObjectId(order_id)})
    logger.info("order_created", order_id=order_id, user_id=identity.user_id, total=order["total"])

    view = order_view(order)
    return {
        "success": True,
        "message": "Order placed successfully",
        "order": {
            "id": view["id"],
            "orderNumber": view["orderNumber"],
            "items": view["items"],
            "subtotal": view["subtotal"],
            "tax": view["tax"],
            "shippingCost": view["shippingCost"],
            "total": view["total"],
            "status": view["status"],
            "paymentStatus": view["paymentStatus"],
            "shipping": view["shipping"],
            "createdAt": view["createdAt"],
            "estimatedDelivery": estimated_delivery(utcnow()).isoformat(),
        },
    }


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(require_user),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"userId": ObjectId(identity.user_id)}
    if status:
        query["status"] = status.value

    orders = get_documents(
        db, "order", query, sort=[("createdAt", DESCENDING)], skip=skip_for(page, limit), limit=limit
    )
    total = db["order"].count_documents(query)
    return {
        "success": True,
        "data": [order_view(o) for o in orders],
        "pagination": paginate(page, limit, total),
    }


@router.get("/stats/summary")
def order_summary(identity: Identity = Depends(require_user), db: Database = Depends(get_db)):
    stats = list(
        db["order"].aggregate(
            [
                {"$match": {"userId": ObjectId(identity.user_id)}},
                {
                    "$group": {
                        "_id": None,
                        "totalOrders": {"$sum": 1},
                        "totalSpent": {"$sum": "$total"},
                        "pendingOrders": {"$sum": {"$cond": [{"$eq": ["$status", "Pending"]}, 1, 0]}},
                        "deliveredOrders": {"$sum": {"$cond": [{"$eq": ["$status", "Delivered"]}, 1, 0]}},
                    }
                },
            ]
        )
    )
    data = {"totalOrders": 0, "totalSpent": 0, "pendingOrders": 0, "deliveredOrders": 0}
    if stats:
        data.update({k: v for k, v in stats[0].items() if k != "_id"})
        data["totalSpent"] = round(data["totalSpent"], 2)
    return {"success": True, "data": data}


@router.get("/{order_id}")
def get_order(order_id: str, identity: Identity = Depends(require_user), db: Database = Depends(get_db)):
    order = load_order(db, order_id)
    authorize(identity, OwnerOf(order.get("userId"), "Access denied. You can only view your own orders."))
    return {"success": True, "data": order_view(order)}


@router.put("/{order_id}/status")
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    admin: Identity = Depends(require_admin),
    db: Database = Depends(get_db),
):
    order = load_order(db, order_id)
    decision = check_transition(order["status"], body.status)
    if not decision.allowed:
        raise ValidationError(decision.reason, reason="invalid_transition")

    updated = db["order"].find_one_and_update(
        {"_id": order["_id"], "status": order["status"]},
        {"$set": {"status": body.status, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Order status changed concurrently, please retry", reason="status_changed")
    logger.info("order_status_changed", order_id=order_id, status=body.status, by=admin.user_id)
    return {"success": True, "data": order_view(updated)}
