from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from jose import jwt

import config
from errors import Forbidden, Unauthenticated
from security import (
    AdminOnly,
    AnyUser,
    Decision,
    Identity,
    OwnerOf,
    Policy,
    authenticate,
    authorize,
    create_token,
    decode_token,
    hash_password,
    verify_password,
)


@pytest.fixture()
def identity():
    return Identity(user_id=str(ObjectId()), email="lerato@example.com", name="Lerato", role="user")


def _rejection(header):
    with pytest.raises(Unauthenticated) as exc:
        authenticate(header)
    assert exc.value.status_code == 401
    return exc.value


def test_round_trip_exposes_identity(identity):
    resolved = authenticate(f"Bearer {create_token(identity)}")
    assert resolved == identity


def test_token_carries_expected_claims(identity):
    claims = decode_token(create_token(identity))

    assert claims["userId"] == identity.user_id
    assert claims["email"] == "lerato@example.com"
    assert claims["name"] == "Lerato"
    assert claims["role"] == "user"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_missing_header():
    error = _rejection(None)
    assert error.reason == "no_token"
    assert error.message == "No token provided"


@pytest.mark.parametrize("header", ["Bearer", "Bearer   ", "Token abc.def.ghi", "abc.def.ghi"])
def test_bad_format(header):
    error = _rejection(header)
    assert error.reason == "bad_format"
    assert error.message == "Token format: Bearer <token>"


def test_expired_token_is_distinguished(identity):
    token = create_token(identity, now=datetime.now(timezone.utc) - timedelta(days=8))

    error = _rejection(f"Bearer {token}")
    assert error.reason == "token_expired"
    assert error.message == "Token expired"


def test_token_signed_with_other_secret(identity):
    token = jwt.encode({"userId": identity.user_id}, "not-the-secret", algorithm="HS256")

    error = _rejection(f"Bearer {token}")
    assert error.reason == "invalid_token"
    assert error.message == "Invalid token"


def test_tampered_payload(identity):
    header, _, signature = create_token(identity).split(".")
    forged = jwt.encode({"userId": identity.user_id, "role": "admin"}, "whatever", algorithm="HS256")
    tampered = ".".join([header, forged.split(".")[1], signature])

    assert _rejection(f"Bearer {tampered}").reason == "invalid_token"


def test_garbage_token():
    assert _rejection("Bearer not-a-jwt").reason == "invalid_token"


@pytest.mark.parametrize("user_id", [None, "", "12345", 42])
def test_payload_without_usable_user_id(user_id):
    claims = {"email": "x@example.com"}
    if user_id is not None:
        claims["userId"] = user_id
    token = jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALG)

    assert _rejection(f"Bearer {token}").reason == "invalid_token"


def test_missing_role_defaults_to_user():
    token = jwt.encode({"userId": str(ObjectId()), "email": "x@example.com"}, config.JWT_SECRET, algorithm="HS256")
    assert authenticate(f"Bearer {token}").role == "user"


def test_password_hashing():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)
    assert not verify_password("secret123", "")


def test_policies(identity):
    admin = Identity(user_id=str(ObjectId()), email="a@example.com", name="Admin", role="admin")

    assert AnyUser().check(identity) == Decision.allow()
    assert AdminOnly().check(admin).allowed
    assert AdminOnly().check(identity) == Decision.deny("Admin access required")
    assert OwnerOf(ObjectId(identity.user_id)).check(identity).allowed
    assert not OwnerOf(admin.user_id).check(identity).allowed
    assert not OwnerOf(None).check(identity).allowed


def test_policy_subclasses_must_implement_check():
    class Incomplete(Policy):
        pass

    with pytest.raises(TypeError):
        Policy()
    with pytest.raises(TypeError):
        Incomplete()


def test_authorize_raises_forbidden_on_denial(identity):
    assert authorize(identity, AnyUser()) is identity
    with pytest.raises(Forbidden) as exc:
        authorize(identity, AdminOnly())
    assert exc.value.status_code == 403
    assert exc.value.message == "Admin access required"
