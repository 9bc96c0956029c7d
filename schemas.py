"""
Data schemas for the storefront.

Each record model maps to a named collection in the Persistence Store
(collection name is the plural lowercase entity name). Attributes are
snake_case in Python and camelCase on the wire and on disk.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ADMIN_ROLE = "admin"
USER_ROLE = "user"
ORDER_COMPLETED = "completed"


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict:
        """Dump in the on-disk / wire shape."""
        return self.model_dump(mode="json", by_alias=True)


# Catalog

class ProductStats(Record):
    purchased: int = Field(0, ge=0, description="Units sold across all orders")
    favorited: int = Field(0, ge=0, description="Times added to a favorites list")


class Category(Record):
    id: int
    name: str = Field(..., description="Category name")


class CategoryCreate(Record):
    name: str = Field(..., min_length=1)


class Product(Record):
    id: int
    name: str = Field(..., description="Product name")
    price: float = Field(..., gt=0, description="Base price before discount")
    category_id: Optional[int] = Field(None, description="Weak reference to a category")
    description: Optional[str] = None
    image: Optional[str] = Field(None, description="Image path or URL")
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    stats: ProductStats = Field(default_factory=ProductStats)


class ProductCreate(Record):
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    discount: float = Field(0, ge=0, le=100)


class ProductPatch(Record):
    """Fields an admin may change on an existing product."""
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, gt=0)
    category_id: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    discount: Optional[float] = Field(None, ge=0, le=100)


class FavoriteChange(Record):
    change: Literal[1, -1]


class ProductView(Product):
    """A product joined with its category and priced for display."""
    final_price: float
    category: Optional[Category] = None


# Cart / orders

class CartItem(Record):
    product_id: int = Field(..., description="Weak reference to a product")
    name: str = Field("", description="Product name at add time")
    price: float = Field(..., ge=0, description="Unit price captured at add time")
    quantity: int = Field(1, ge=1)
    image: Optional[str] = None


class OrderCreate(Record):
    user_id: int
    items: List[CartItem] = Field(default_factory=list)
    total: float = Field(..., description="Computed by the submitter, not re-verified")


class Order(Record):
    id: int
    user_id: int
    items: List[CartItem]
    total: float
    created_at: datetime
    status: str = ORDER_COMPLETED


class StatsSummary(Record):
    total_revenue: float
    total_orders: int
    top_products: List[Product]


# Reviews

class ReviewCreate(Record):
    user_id: int
    user_name: str = ""
    product_id: int
    text: str
    rating: int = Field(5, description="Expected 1-5, not enforced")


class Review(Record):
    id: int
    user_id: int
    user_name: str = ""
    product_id: int
    text: str
    rating: int
    created_at: datetime
    admin_reply: Optional[str] = None


class AdminReply(Record):
    admin_reply: str = Field(..., min_length=1)


# Users

class User(Record):
    id: int
    username: str
    password_hash: str
    role: Literal["admin", "user"] = USER_ROLE
    email: Optional[str] = None
    created_at: datetime


class PublicUser(Record):
    id: int
    username: str
    role: Literal["admin", "user"] = USER_ROLE
    email: Optional[str] = None


class RegisterRequest(Record):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: Optional[str] = None


class LoginRequest(Record):
    username: str
    password: str


class AuthResponse(Record):
    success: bool = True
    user: PublicUser
