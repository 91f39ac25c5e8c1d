"""Payload validation returning tagged results.

Validators never raise: they return a :class:`Validation` holding either the
cleaned value or the first :class:`~errors.ValidationError` encountered.
Routes decide what to do with a failure.
"""
import math
from dataclasses import dataclass
from numbers import Integral, Number
from typing import Any, Generic, List, Optional, TypeVar

from email_validator import EmailNotValidError, validate_email

from errors import ValidationError
from schemas import OrderItem, PaymentMethod, ShippingInfo

T = TypeVar("T")

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MAX_NOTES_LENGTH = 500
MAX_ITEM_QUANTITY = 10_000
MAX_ITEM_PRICE = 1_000_000


@dataclass
class Validation(Generic[T]):
    value: Optional[T] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Validation[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, reason: str) -> "Validation[T]":
        return cls(error=ValidationError(message, reason=reason))

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


@dataclass
class OrderDraft:
    items: List[OrderItem]
    shipping: ShippingInfo
    notes: str = ""
    payment_method: str = PaymentMethod.CREDIT_CARD.value


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _is_number(value: Any) -> bool:
    if not isinstance(value, Number) or isinstance(value, bool):
        return False
    return isinstance(value, Integral) or math.isfinite(value)


def validate_order_payload(payload: Any) -> Validation[OrderDraft]:
    if not isinstance(payload, dict):
        return Validation.failure("Order must contain at least one item", "items_required")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        return Validation.failure("Order must contain at least one item", "items_required")

    line_items = []
    for item in items:
        if not isinstance(item, dict) or not all(
            _present(item.get(key)) for key in ("productId", "name", "price", "quantity")
        ):
            return Validation.failure("Each item must have productId, name, price, and quantity", "item_incomplete")

        price, quantity = item["price"], item["quantity"]
        if not _is_number(price) or not 0 < price <= MAX_ITEM_PRICE:
            return Validation.failure("Item price must be greater than 0", "item_price_invalid")
        if not _is_number(quantity) or int(quantity) != quantity or not 1 <= quantity <= MAX_ITEM_QUANTITY:
            return Validation.failure("Item quantity must be between 1 and 10000", "item_quantity_invalid")

        line_items.append(
            OrderItem(
                product_id=str(item["productId"]).strip(),
                name=str(item["name"]).strip(),
                price=price,
                quantity=int(quantity),
            )
        )

    shipping = payload.get("shipping")
    if not isinstance(shipping, dict) or not all(
        _present(shipping.get(key)) for key in ("address", "city", "postalCode")
    ):
        return Validation.failure("Complete shipping information is required", "shipping_incomplete")

    notes = payload.get("notes") or ""
    if not isinstance(notes, str):
        return Validation.failure("Notes must be text", "notes_invalid")
    if len(notes.strip()) > MAX_NOTES_LENGTH:
        return Validation.failure("Notes cannot exceed 500 characters", "notes_too_long")

    payment_method = payload.get("paymentMethod") or PaymentMethod.CREDIT_CARD.value
    if not isinstance(payment_method, str) or payment_method not in {m.value for m in PaymentMethod}:
        return Validation.failure("Unsupported payment method", "payment_method_invalid")

    country = shipping.get("country")
    return Validation.success(
        OrderDraft(
            items=line_items,
            shipping=ShippingInfo(
                address=str(shipping["address"]).strip(),
                city=str(shipping["city"]).strip(),
                postal_code=str(shipping["postalCode"]).strip(),
                **({"country": str(country).strip()} if _present(country) else {}),
            ),
            notes=notes.strip(),
            payment_method=payment_method,
        )
    )


def _valid_email(email: Any) -> Optional[str]:
    if not isinstance(email, str) or not email.strip():
        return None
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return None
    return email.strip().lower()


def validate_registration(payload: Any) -> Validation[dict]:
    payload = payload if isinstance(payload, dict) else {}

    name = payload.get("name")
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        return Validation.failure("Name must be at least 2 characters long", "name_invalid")

    email = _valid_email(payload.get("email"))
    if email is None:
        return Validation.failure("Valid email address is required", "email_invalid")

    password = payload.get("password")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        return Validation.failure("Password must be at least 6 characters long", "password_too_short")

    return Validation.success({"name": name.strip(), "email": email, "password": password})


def validate_login(payload: Any) -> Validation[dict]:
    payload = payload if isinstance(payload, dict) else {}

    email = _valid_email(payload.get("email"))
    if email is None:
        return Validation.failure("Valid email address is required", "email_invalid")

    password = payload.get("password")
    if not isinstance(password, str) or not password:
        return Validation.failure("Password is required", "password_required")

    return Validation.success({"email": email, "password": password})
