"""
Storefront Schemas

Each document lives in the key-value store under a prefixed key:
- user:{id}                               -> UserProfile
- product:{id}                            -> Product
- review:product:{productId}:{reviewId}   -> Review
- order:{id}                              -> Order
- user:{userId}:order:{orderId}           -> order id (owner index)
- wishlist:{userId}:{productId}           -> product id (wishlist link)

Documents are stored and returned with camelCase keys; the Python attributes
are snake_case.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


def to_iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self, **kwargs) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


# -----------------------------
# Catalog
# -----------------------------

class FlashSale(CamelModel):
    discount_percent: float = Field(
        ...,
        ge=0,
        le=100,
        validation_alias=AliasChoices("discountPercent", "discount", "discount_percent"),
        serialization_alias="discountPercent",
    )
    end_time: str


class Product(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    name: str
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    category: str = ""
    brand: str = ""
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    description: str = ""
    short_description: Optional[str] = None
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    in_stock: bool = True
    featured: bool = False
    trending: bool = False
    new_arrival: bool = False
    flash_sale: Optional[FlashSale] = None


class Review(CamelModel):
    id: str
    product_id: str
    user_id: str
    user_name: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
    verified: bool = True
    created_at: str


# -----------------------------
# Users
# -----------------------------

class Address(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    postal_code: Optional[str] = None
    is_default: Optional[bool] = None


class UserProfile(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    addresses: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: str


class PublicUser(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


# -----------------------------
# Orders
# -----------------------------

class OrderItem(CamelModel):
    """Line item snapshot taken at checkout; not a live product reference."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    product_id: str
    quantity: int = Field(..., ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def product_id_from_cart_item(cls, data: Any) -> Any:
        # cart items carry the product nested as {id, product: {id, ...}, quantity, ...}
        if isinstance(data, dict) and "productId" not in data and "product_id" not in data:
            product = data.get("product")
            if isinstance(product, dict) and product.get("id") is not None:
                data = {**data, "productId": str(product["id"])}
        return data


class Order(CamelModel):
    id: str
    user_id: str
    items: List[Dict[str, Any]]
    shipping_address: Dict[str, Any]
    payment_method: str
    total: float
    status: OrderStatus = "pending"
    created_at: str
    updated_at: str


# -----------------------------
# Request payloads
# -----------------------------

class SignupPayload(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class ReviewPayload(CamelModel):
    rating: Optional[StrictInt] = None
    comment: Optional[str] = None


class OrderPayload(CamelModel):
    """Items are checked against OrderItem but stored exactly as sent."""

    items: Optional[List[Dict[str, Any]]] = None
    shipping_address: Optional[Address] = None
    payment_method: Optional[str] = None
    total: float = 0

    @field_validator("items")
    @classmethod
    def check_items(cls, items: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
        for index, item in enumerate(items or []):
            try:
                OrderItem.model_validate(item)
            except ValidationError as e:
                error = e.errors()[0]
                location = ".".join(str(part) for part in error["loc"])
                raise ValueError(f"Invalid order item {index}: {location} {error['msg']}".strip())
        return items
