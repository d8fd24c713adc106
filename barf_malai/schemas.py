"""
Pydantic Schemas for the Sheet Service Boundary

Every payload that crosses the RPC boundary is parsed here:
- Catalog rows (categories, products)
- Orders, bills and dashboard stats
- Cart line items and the checkout payload
- Request bodies for the HTTP API

Sheet columns use capitalised or camelCase headers; models accept them
through aliases and emit them again with ``by_alias=True``.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class ProductTypeEnum(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"


class OrderStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


# =============================================================================
# CATALOG
# =============================================================================

class SheetModel(BaseModel):
    """Base for rows that come from the sheet."""
    model_config = ConfigDict(populate_by_name=True)


class Category(SheetModel):
    """A menu category, keyed by name."""
    name: str = Field(..., min_length=1)
    image_url: str = Field(default="", alias="imageURL")

    @field_validator("image_url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)


class Product(SheetModel):
    """A sellable menu item."""
    id: int
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    category: str
    type: ProductTypeEnum = ProductTypeEnum.VEG
    image: str = ""
    description: str = ""

    @field_validator("image", "description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v)


class CartItem(BaseModel):
    """Single line item in the cart."""
    id: int
    name: str
    price: float = Field(..., gt=0)
    image: str = ""
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CachedMenu(BaseModel):
    """Menu snapshot stored locally with its write time (epoch ms)."""
    categories: List[Category] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    timestamp: int


# =============================================================================
# ORDERS
# =============================================================================

class OrderLine(BaseModel):
    """Item as recorded on an order."""
    name: str
    price: float
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Order(SheetModel):
    """Order row. ``Timestamp`` doubles as the order id."""
    timestamp: str = Field(..., alias="Timestamp")
    name: str = Field(..., alias="Name")
    phone: str = Field(default="", alias="Phone")
    table: str = Field(default="", alias="Table")
    items: List[OrderLine] = Field(default_factory=list, alias="Items")
    total: float = Field(default=0.0, alias="Total")
    status: OrderStatusEnum = Field(default=OrderStatusEnum.PENDING, alias="Status")
    review: str = Field(default="", alias="Review")

    @field_validator("timestamp", "phone", "table", "review", mode="before")
    @classmethod
    def cell_to_str(cls, v: Any) -> str:
        # Sheets hands numeric cells back as numbers
        return "" if v is None else str(v)

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return json.loads(v) if v.strip() else []
            except json.JSONDecodeError:
                raise ValueError("Items cell is not valid JSON")
        return v

    @property
    def order_id(self) -> str:
        return self.timestamp


class DashboardStats(SheetModel):
    total_orders: int = Field(default=0, alias="totalOrders")
    total_sales: float = Field(default=0.0, alias="totalSales")
    today_orders: int = Field(default=0, alias="todayOrders")
    pending_orders: int = Field(default=0, alias="pendingOrders")


class OrderPayload(SheetModel):
    """Checkout serialization sent as the ``orderData`` parameter."""
    name: str
    phone: str
    email: str = ""
    table: str = ""
    review: str = ""
    cart: List[OrderLine]
    total_amount: float = Field(..., alias="totalAmount")


# =============================================================================
# RESPONSE SCHEMAS (one per action)
# =============================================================================

class LoginResponse(BaseModel):
    authenticated: bool = False


class CategoriesResponse(BaseModel):
    categories: List[Category] = Field(default_factory=list)


class ProductsResponse(BaseModel):
    products: List[Product] = Field(default_factory=list)


class StatsResponse(BaseModel):
    stats: DashboardStats = Field(default_factory=DashboardStats)


class OrdersResponse(BaseModel):
    orders: List[Order] = Field(default_factory=list)


class PlaceOrderResponse(SheetModel):
    order_id: str = Field(..., alias="orderId")

    @field_validator("order_id", mode="before")
    @classmethod
    def id_to_str(cls, v: Any) -> str:
        return str(v)


class BillResponse(BaseModel):
    bill: Order


# =============================================================================
# FORMS
# =============================================================================

class CheckoutForm(BaseModel):
    """Customer details entered at checkout."""
    name: str = ""
    phone: str = ""
    email: str = ""
    table: str = ""
    review: str = ""

    @field_validator("name", "phone", "email", "table", "review", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        digits = re.sub(r"[^0-9]", "", v)
        if not 7 <= len(digits) <= 15:
            raise ValueError("Phone must be 7-15 digits")
        return v


class ProductCreate(BaseModel):
    """Admin form for a new product."""
    name: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    type: ProductTypeEnum = ProductTypeEnum.VEG
    image: str = ""
    description: str = ""

    @field_validator("name", "category", "image", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# =============================================================================
# HTTP REQUEST BODIES
# =============================================================================

class AddToCartRequest(BaseModel):
    product_id: int


class QuantityChangeRequest(BaseModel):
    delta: int


class LoginRequest(BaseModel):
    password: str


class CategoryCreate(BaseModel):
    name: str = ""
    image: str = ""


class StatusUpdateRequest(BaseModel):
    status: OrderStatusEnum


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
