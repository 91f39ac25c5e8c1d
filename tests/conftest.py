import os

os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("DATABASE_NAME", None)

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import create_document, ensure_indexes, get_db
from main import app
from schemas import User
from security import Identity, create_token, hash_password


@pytest.fixture()
def db():
    database = mongomock.MongoClient()["shoplite_test"]
    ensure_indexes(database)
    return database


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Insert a user straight into the store and return (identity, token)."""

    def _make(name="Thandi Mokoena", email="thandi@example.com", password="secret123", role="user"):
        user = User(name=name, email=email, password_hash=hash_password(password), role=role)
        user_id = create_document(db, "user", user)
        identity = Identity(user_id=user_id, email=email, name=name, role=role)
        return identity, create_token(identity)

    return _make


@pytest.fixture()
def customer(make_user):
    return make_user()


@pytest.fixture()
def admin(make_user):
    return make_user(name="Store Admin", email="admin@example.com", role="admin")


@pytest.fixture()
def order_payload():
    return {
        "items": [
            {"productId": "lap-001", "name": "ZenBook Pro 15", "price": 500, "quantity": 2},
            {"productId": "acc-201", "name": "USB-C Hub", "price": 100, "quantity": 1},
        ],
        "shipping": {"address": "12 Long Street", "city": "Cape Town", "postalCode": "8001"},
        "notes": "Leave at reception",
        "paymentMethod": "EFT",
    }


@pytest.fixture()
def product_payload():
    return {
        "code": "lap-001",
        "name": "ZenBook Pro 15",
        "brand": "ASUS",
        "price": 24999.0,
        "image": "images/laptop1.jpg",
        "short": "Slim powerhouse for devs and creators.",
        "description": "Intel i7, 16GB RAM, 1TB SSD, RTX 4060. Perfect for coding and content creation.",
        "rating": 4.6,
        "stock": 8,
        "category": "Laptop",
    }
