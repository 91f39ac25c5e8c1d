"""
Database Schemas for the ShopLite storefront

Each Pydantic model maps to a MongoDB collection (lowercased class name).
Documents are stored with camelCase keys, the same shape the API speaks.

Collections:
- user
- product
- order
"""
import re
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

import config

IMAGE_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True, validate_default=True
    )


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ProductCategory(str, Enum):
    LAPTOP = "Laptop"
    SMARTPHONE = "Smartphone"
    HEADPHONES = "Headphones"
    ACCESSORY = "Accessory"
    TABLET = "Tablet"
    MONITOR = "Monitor"
    OTHER = "Other"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "Credit Card"
    PAYPAL = "PayPal"
    EFT = "EFT"
    CASH_ON_DELIVERY = "Cash on Delivery"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class User(CamelModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., min_length=2, description="Full name")
    email: EmailStr = Field(..., description="Email address, stored lowercase")
    password_hash: str = Field(..., description="BCrypt password hash")
    role: Role = Field(Role.USER, description="user | admin")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v):
        return v.strip().lower()


class Product(CamelModel):
    """
    Products collection schema
    Collection name: "product"
    """
    code: Optional[str] = Field(None, description="Catalog code, e.g. LAP-001")
    name: str = Field(..., min_length=2, max_length=100)
    brand: str = Field(..., min_length=1)
    price: float = Field(..., gt=0, le=1_000_000, description="Price in Rand")
    image: str = Field("images/default-product.jpg")
    short: str = Field(..., min_length=10, max_length=150, description="Short description")
    description: str = Field(..., min_length=20, max_length=2000)
    rating: float = Field(0, ge=0, le=5)
    stock: int = Field(0, ge=0, description="Units in stock")
    category: ProductCategory
    specifications: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    featured: bool = False
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    sale_price: Optional[float] = Field(None, ge=0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v):
        if v is None:
            return v
        v = v.strip().upper()
        return v or None

    @field_validator("name", "brand", "short", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("image")
    @classmethod
    def check_image(cls, v):
        if not IMAGE_PATTERN.search(v):
            raise ValueError("Image must be a valid image file (jpg, png, gif, webp)")
        return v

    @field_validator("rating")
    @classmethod
    def round_rating(cls, v):
        return round(v, 1)

    @model_validator(mode="after")
    def check_sale_price(self):
        if self.sale_price is not None and self.sale_price > self.price:
            raise ValueError("Sale price cannot exceed regular price")
        return self


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    brand: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0, le=1_000_000)
    image: Optional[str] = None
    short: Optional[str] = Field(None, min_length=10, max_length=150)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    rating: Optional[float] = Field(None, ge=0, le=5)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[ProductCategory] = None
    specifications: Optional[Dict[str, str]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None
    featured: Optional[bool] = None
    discount: Optional[float] = Field(None, ge=0, le=100)
    sale_price: Optional[float] = Field(None, ge=0)

    @field_validator("name", "brand", "short", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("image")
    @classmethod
    def check_image(cls, v):
        if v is not None and not IMAGE_PATTERN.search(v):
            raise ValueError("Image must be a valid image file (jpg, png, gif, webp)")
        return v

    @field_validator("rating")
    @classmethod
    def round_rating(cls, v):
        return None if v is None else round(v, 1)


class OrderItem(CamelModel):
    product_id: str
    name: str
    price: float = Field(..., gt=0)
    quantity: int = Field(..., ge=1)
    item_total: float = 0


class ShippingInfo(CamelModel):
    address: str
    city: str
    postal_code: str
    country: str = config.DEFAULT_COUNTRY


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class Order(CamelModel):
    """
    Orders collection schema
    Collection name: "order"
    """
    user_id: str
    items: List[OrderItem]
    subtotal: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    shipping_cost: float = Field(0, ge=0)
    total: float = Field(..., ge=0)
    shipping: ShippingInfo
    status: OrderStatus = OrderStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str = Field("", max_length=500)
