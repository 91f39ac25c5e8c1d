import pytest

from errors import ValidationError
from validation import validate_login, validate_order_payload, validate_registration


def _payload(**overrides):
    payload = {
        "items": [{"productId": "lap-001", "name": "ZenBook", "price": 200, "quantity": 1}],
        "shipping": {"address": "12 Long Street", "city": "Cape Town", "postalCode": "8001"},
    }
    payload.update(overrides)
    return payload


def _reason(result):
    assert not result.ok
    assert isinstance(result.error, ValidationError)
    assert result.error.status_code == 400
    return result.error.reason


def test_valid_payload_produces_draft():
    result = validate_order_payload(_payload(notes="  ring twice  "))

    assert result.ok
    draft = result.value
    assert draft.items[0].product_id == "lap-001"
    assert draft.items[0].quantity == 1
    assert draft.shipping.country == "South Africa"
    assert draft.notes == "ring twice"
    assert draft.payment_method == "Credit Card"


def test_country_is_kept_when_given():
    shipping = {"address": "1 Main Rd", "city": "Gaborone", "postalCode": "0000", "country": "Botswana"}
    assert validate_order_payload(_payload(shipping=shipping)).value.shipping.country == "Botswana"


@pytest.mark.parametrize("items", [None, [], "lap-001", {}])
def test_items_required(items):
    assert _reason(validate_order_payload(_payload(items=items))) == "items_required"


@pytest.mark.parametrize(
    "item",
    [
        {"name": "ZenBook", "price": 200, "quantity": 1},
        {"productId": "", "name": "ZenBook", "price": 200, "quantity": 1},
        {"productId": "lap-001", "name": "   ", "price": 200, "quantity": 1},
        {"productId": "lap-001", "name": "ZenBook", "quantity": 1},
        {"productId": "lap-001", "name": "ZenBook", "price": 200},
        "lap-001",
    ],
)
def test_item_fields_required(item):
    assert _reason(validate_order_payload(_payload(items=[item]))) == "item_incomplete"


@pytest.mark.parametrize(
    "price", [0, -5, "200", True, 1_000_001, 10**400, float("inf"), float("-inf"), float("nan")]
)
def test_item_price_must_be_positive_number(price):
    item = {"productId": "lap-001", "name": "ZenBook", "price": price, "quantity": 1}
    assert _reason(validate_order_payload(_payload(items=[item]))) == "item_price_invalid"


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", 10_001, 10**20, 10**400, float("inf"), float("nan")])
def test_item_quantity_must_be_positive_integer(quantity):
    item = {"productId": "lap-001", "name": "ZenBook", "price": 200, "quantity": quantity}
    assert _reason(validate_order_payload(_payload(items=[item]))) == "item_quantity_invalid"


def test_item_quantity_upper_bound_is_inclusive():
    item = {"productId": "lap-001", "name": "ZenBook", "price": 200, "quantity": 10_000}
    assert validate_order_payload(_payload(items=[item])).value.items[0].quantity == 10_000


def test_first_violation_wins():
    items = [
        {"productId": "lap-001", "name": "ZenBook", "price": -1, "quantity": 0},
        {"name": "no id"},
    ]
    assert _reason(validate_order_payload(_payload(items=items, shipping=None))) == "item_price_invalid"


@pytest.mark.parametrize("missing", ["address", "city", "postalCode"])
def test_shipping_fields_required(missing):
    shipping = {"address": "12 Long Street", "city": "Cape Town", "postalCode": "8001"}
    shipping[missing] = ""
    assert _reason(validate_order_payload(_payload(shipping=shipping))) == "shipping_incomplete"


def test_shipping_block_required():
    payload = _payload()
    del payload["shipping"]
    assert _reason(validate_order_payload(payload)) == "shipping_incomplete"


def test_notes_length_limit():
    assert _reason(validate_order_payload(_payload(notes="x" * 501))) == "notes_too_long"
    assert validate_order_payload(_payload(notes="x" * 500)).ok


def test_unknown_payment_method():
    assert _reason(validate_order_payload(_payload(paymentMethod="Bitcoin"))) == "payment_method_invalid"


def test_unwrap_raises_carried_error():
    result = validate_order_payload({})
    with pytest.raises(ValidationError) as exc:
        result.unwrap()
    assert exc.value.reason == "items_required"


def test_registration_normalizes_input():
    result = validate_registration({"name": "  Sipho  ", "email": "Sipho@Example.COM ", "password": "hunter2"})

    assert result.ok
    assert result.value == {"name": "Sipho", "email": "sipho@example.com", "password": "hunter2"}


@pytest.mark.parametrize(
    "payload, reason",
    [
        ({"name": "S", "email": "s@example.com", "password": "secret1"}, "name_invalid"),
        ({"email": "s@example.com", "password": "secret1"}, "name_invalid"),
        ({"name": "Sipho", "email": "not-an-email", "password": "secret1"}, "email_invalid"),
        ({"name": "Sipho", "email": "s@example.com", "password": "12345"}, "password_too_short"),
        ({"name": "Sipho", "email": "s@example.com"}, "password_too_short"),
    ],
)
def test_registration_rejections(payload, reason):
    assert _reason(validate_registration(payload)) == reason


def test_password_length_boundary():
    base = {"name": "Sipho", "email": "s@example.com"}
    assert not validate_registration({**base, "password": "12345"}).ok
    assert validate_registration({**base, "password": "123456"}).ok


def test_login_validation():
    assert _reason(validate_login({"email": "bad", "password": "x"})) == "email_invalid"
    assert _reason(validate_login({"email": "s@example.com"})) == "password_required"
    assert validate_login({"email": "S@Example.com", "password": "x"}).value["email"] == "s@example.com"
