from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import APIRouter, Body, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import config
from database import create_document, get_db, serialize_doc
from errors import Conflict, NotFound, Unauthenticated
from logging_config import get_logger
from schemas import Role, User
from security import Identity, create_token, hash_password, require_user, verify_password
from validation import validate_login, validate_registration

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

EXPIRES_IN = f"{config.JWT_EXPIRES_DAYS}d"


def identity_for(user: Dict[str, Any]) -> Identity:
    return Identity(
        user_id=str(user["_id"]),
        email=user["email"],
        name=user["name"],
        role=user.get("role", Role.USER.value),
    )


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    doc = serialize_doc(user)
    doc.pop("passwordHash", None)
    return doc


@router.post("/register", status_code=201)
def register(payload: Optional[Dict[str, Any]] = Body(None), db: Database = Depends(get_db)):
    data = validate_registration(payload).unwrap()

    if db["user"].find_one({"email": data["email"]}):
        raise Conflict("Email already registered", reason="email_taken")

    user = User(name=data["name"], email=data["email"], password_hash=hash_password(data["password"]))
    try:
        user_id = create_document(db, "user", user)
    except DuplicateKeyError:
        raise Conflict("Email already registered", reason="email_taken")

    created = db["user"].find_one({"_id": ObjectId(user_id)})
    logger.info("user_registered", user_id=user_id)
    return {
        "success": True,
        "message": "Registration successful",
        "user": {k: v for k, v in public_user(created).items() if k in ("id", "name", "email", "role", "createdAt")},
        "token": create_token(identity_for(created)),
        "expiresIn": EXPIRES_IN,
    }


@router.post("/login")
def login(payload: Optional[Dict[str, Any]] = Body(None), db: Database = Depends(get_db)):
    data = validate_login(payload).unwrap()

    user = db["user"].find_one({"email": data["email"]})
    if not user or not verify_password(data["password"], user.get("passwordHash", "")):
        logger.info("login_failed", email=data["email"])
        raise Unauthenticated("Invalid email or password", reason="invalid_credentials")

    return {
        "success": True,
        "message": "Login successful",
        "user": {k: v for k, v in public_user(user).items() if k in ("id", "name", "email", "role")},
        "token": create_token(identity_for(user)),
        "expiresIn": EXPIRES_IN,
    }


@router.get("/me")
def me(identity: Identity = Depends(require_user), db: Database = Depends(get_db)):
    user = db["user"].find_one({"_id": ObjectId(identity.user_id)})
    if not user:
        raise NotFound("User not found", reason="user_not_found")
    return {"success": True, "user": public_user(user)}
