"""Bearer-token authentication gate and authorization policies.

The gate turns an ``Authorization: Bearer <token>`` header into an
:class:`Identity`. Authorization is decided afterwards by a policy object
that returns a :class:`Decision`; a denial becomes a ``Forbidden`` error.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Header
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from passlib.context import CryptContext

import config
from errors import Forbidden, Unauthenticated
from logging_config import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    name: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_token(identity: Identity, now: Optional[datetime] = None, expires_in: Optional[timedelta] = None) -> str:
    now = now or datetime.now(timezone.utc)
    expires_in = expires_in if expires_in is not None else timedelta(days=config.JWT_EXPIRES_DAYS)
    payload = {
        "userId": identity.user_id,
        "email": identity.email,
        "name": identity.name,
        "role": identity.role,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALG)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALG])
    except ExpiredSignatureError:
        raise Unauthenticated("Token expired", reason="token_expired")
    except JWTError:
        raise Unauthenticated("Invalid token", reason="invalid_token")


def identity_from_payload(payload: Dict[str, Any]) -> Identity:
    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
        raise Unauthenticated("Invalid token", reason="invalid_token")
    return Identity(
        user_id=user_id,
        email=payload.get("email") or "",
        name=payload.get("name") or "",
        role=payload.get("role") or "user",
    )


def authenticate(authorization: Optional[str]) -> Identity:
    if not authorization:
        raise Unauthenticated("No token provided", reason="no_token")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Token format: Bearer <token>", reason="bad_format")
    try:
        return identity_from_payload(decode_token(parts[1]))
    except Unauthenticated as e:
        logger.info("token_rejected", reason=e.reason)
        raise


# Authorization


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)


class Policy(ABC):
    @abstractmethod
    def check(self, identity: Identity) -> Decision:
        """Decide whether ``identity`` may proceed."""


class AnyUser(Policy):
    def check(self, identity: Identity) -> Decision:
        return Decision.allow()


class AdminOnly(Policy):
    def check(self, identity: Identity) -> Decision:
        if identity.is_admin:
            return Decision.allow()
        return Decision.deny("Admin access required")


class OwnerOf(Policy):
    """Allows the caller whose id matches the resource owner."""

    def __init__(self, owner_id: Any, denial: str = "Access denied"):
        self.owner_id = str(owner_id) if owner_id is not None else None
        self.denial = denial

    def check(self, identity: Identity) -> Decision:
        if self.owner_id is not None and self.owner_id == identity.user_id:
            return Decision.allow()
        return Decision.deny(self.denial)


def enforce(decision: Decision) -> None:
    if not decision.allowed:
        raise Forbidden(decision.reason, reason="forbidden")


def authorize(identity: Identity, policy: Policy) -> Identity:
    decision = policy.check(identity)
    if not decision.allowed:
        logger.warning("access_denied", user_id=identity.user_id, policy=type(policy).__name__, reason=decision.reason)
    enforce(decision)
    return identity


# FastAPI dependencies


def require_user(authorization: Optional[str] = Header(None)) -> Identity:
    return authorize(authenticate(authorization), AnyUser())


def require_admin(authorization: Optional[str] = Header(None)) -> Identity:
    return authorize(authenticate(authorization), AdminOnly())


def catalog_writer(authorization: Optional[str] = Header(None)) -> Optional[Identity]:
    if not config.CATALOG_WRITES_REQUIRE_ADMIN:
        return None
    return require_admin(authorization)
