"""Order pricing, order documents and status transitions."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable

from bson import ObjectId

import config
from schemas import Order, OrderItem, OrderStatus
from security import Decision
from validation import OrderDraft

CENT = Decimal("0.01")

# Forward-only lifecycle; cancellation only before shipping.
STATUS_TRANSITIONS = {
    OrderStatus.PENDING.value: {OrderStatus.PROCESSING.value, OrderStatus.CANCELLED.value},
    OrderStatus.PROCESSING.value: {OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value},
    OrderStatus.SHIPPED.value: {OrderStatus.DELIVERED.value},
    OrderStatus.DELIVERED.value: set(),
    OrderStatus.CANCELLED.value: set(),
}


def to_money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total: Decimal

    def as_floats(self) -> Dict[str, float]:
        return {
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "shipping_cost": float(self.shipping_cost),
            "total": float(self.total),
        }


def line_amount(item: OrderItem) -> Decimal:
    return Decimal(str(item.price)) * item.quantity


def line_total(item: OrderItem) -> Decimal:
    return to_money(line_amount(item))


def shipping_cost_for(subtotal: Decimal) -> Decimal:
    if subtotal > config.FREE_SHIPPING_THRESHOLD:
        return Decimal("0.00")
    return to_money(config.SHIPPING_FEE)


def price_items(items: Iterable[OrderItem]) -> OrderTotals:
    subtotal = to_money(sum((line_amount(item) for item in items), Decimal("0")))
    tax = to_money(subtotal * config.TAX_RATE)
    shipping_cost = shipping_cost_for(subtotal)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping_cost=shipping_cost,
        total=subtotal + tax + shipping_cost,
    )


def build_order(draft: OrderDraft, user_id: str) -> Dict[str, Any]:
    """Price a validated draft into an order document owned by ``user_id``."""
    items = [item.model_copy(update={"item_total": float(line_total(item))}) for item in draft.items]
    totals = price_items(items)
    order = Order(
        user_id=user_id,
        items=items,
        shipping=draft.shipping,
        notes=draft.notes,
        payment_method=draft.payment_method,
        status=OrderStatus.PENDING,
        **totals.as_floats(),
    )
    doc = order.model_dump(by_alias=True)
    doc["userId"] = ObjectId(user_id)
    return doc


def order_number(order_id: Any) -> str:
    return f"ORD-{str(order_id)[-6:].upper()}"


def estimated_delivery(now: datetime) -> datetime:
    return now + timedelta(days=config.DELIVERY_ESTIMATE_DAYS)


def check_transition(current: str, target: str) -> Decision:
    if target == current:
        return Decision.deny(f"Order is already {current}")
    if target not in STATUS_TRANSITIONS.get(current, set()):
        return Decision.deny(f"Cannot change order status from {current} to {target}")
    return Decision.allow()
