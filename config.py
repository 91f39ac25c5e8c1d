import os
from decimal import Decimal


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


APP_ENV = os.getenv("APP_ENV", "development")
IS_PRODUCTION = APP_ENV == "production"

# Security/JWT
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    if IS_PRODUCTION:
        raise RuntimeError("JWT_SECRET is not set in environment variables")
    JWT_SECRET = "dev-secret-change-me"
JWT_ALG = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# HTTP
PORT = int(os.getenv("PORT", "5000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:5500,http://localhost:5500",
    ).split(",")
    if origin.strip()
]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = _flag("LOG_JSON", IS_PRODUCTION)

# Catalog mutations are open unless explicitly gated
CATALOG_WRITES_REQUIRE_ADMIN = _flag("CATALOG_WRITES_REQUIRE_ADMIN")

# Pricing
TAX_RATE = Decimal("0.15")
FREE_SHIPPING_THRESHOLD = Decimal("1000")
SHIPPING_FEE = Decimal("99")
DEFAULT_COUNTRY = "South Africa"
DELIVERY_ESTIMATE_DAYS = 7
