"""
Pydantic Schemas for Request/Response Validation

Field names are snake_case in Python and camelCase on the wire
(resID, qrID, menuID, orderID keep their upper-case "ID").
"""

import re
from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.config import get_settings
from app.models import OrderStatus, UserRole

T = TypeVar("T")


class APIModel(BaseModel):
    """Base schema: camelCase aliases, populated by name or alias."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PartialUpdate(APIModel):
    """
    Base for PUT bodies. Only fields the client sent are applied, and an
    explicit null only clears the columns listed in `clearable`.
    """
    clearable: ClassVar[FrozenSet[str]] = frozenset()

    def changes(self, exclude: Optional[set] = None) -> Dict[str, Any]:
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True, exclude=exclude).items()
            if value is not None or field in self.clearable
        }


class SuccessResponse(APIModel):
    success: bool = True
    message: Optional[str] = None


class DataResponse(APIModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T


class ErrorResponse(APIModel):
    """Standard error response."""
    success: bool = False
    message: str


# =============================================================================
# MENU VARIANTS
# =============================================================================

class Variant(APIModel):
    name: str = Field(..., min_length=1, max_length=80, examples=["Large"])
    price: float = Field(..., ge=0, examples=[349.0])
    is_available: bool = True


def _unique_variant_names(variants: Optional[List[Variant]]) -> Optional[List[Variant]]:
    if variants is None:
        return variants
    names = [v.name for v in variants]
    if len(names) != len(set(names)):
        raise ValueError("Variant names must be unique")
    for name in names:
        if ":" in name:
            raise ValueError("Variant names cannot contain ':'")
    return variants


# =============================================================================
# RESTAURANTS
# =============================================================================

class RestaurantCreate(APIModel):
    name: str = Field(..., min_length=2, max_length=120, examples=["Spice Route"])
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    currency: str = Field(default_factory=lambda: get_settings().default_currency, max_length=10)
    is_active: bool = True


class RestaurantUpdate(PartialUpdate):
    clearable: ClassVar[FrozenSet[str]] = frozenset({"description", "address", "phone", "email", "logo_url"})

    name: Optional[str] = Field(None, min_length=2, max_length=120)
    description: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    currency: Optional[str] = Field(None, max_length=10)
    is_active: Optional[bool] = None


class RestaurantResponse(APIModel):
    res_id: str = Field(..., alias="resID")
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None
    currency: str
    is_active: bool
    created_at: Optional[datetime] = None


class PublicRestaurant(APIModel):
    res_id: str = Field(..., alias="resID")
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    currency: str


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryCreate(APIModel):
    res_id: Optional[str] = Field(None, alias="resID")
    name: str = Field(..., min_length=1, max_length=80, examples=["Starters"])
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(APIModel):
    id: int
    res_id: str = Field(..., alias="resID")
    name: str
    description: Optional[str] = None
    sort_order: int
    is_active: bool


# =============================================================================
# MENU ITEMS
# =============================================================================

class MenuItemCreate(APIModel):
    res_id: Optional[str] = Field(None, alias="resID")
    category_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=120, examples=["Paneer Tikka"])
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0, examples=[249.0])
    variants: List[Variant] = Field(default_factory=list)
    tax_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_vegetarian: bool = False
    is_special_item: bool = False
    is_available: bool = True
    image_url: Optional[str] = None
    preparation_time: Optional[int] = Field(None, ge=1, le=600)

    @field_validator("variants")
    @classmethod
    def check_variants(cls, v: Optional[List[Variant]]) -> Optional[List[Variant]]:
        return _unique_variant_names(v)


class MenuItemUpdate(PartialUpdate):
    clearable: ClassVar[FrozenSet[str]] = frozenset(
        {"category_id", "description", "tax_percentage", "image_url", "preparation_time"}
    )

    category_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    variants: Optional[List[Variant]] = None
    tax_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_vegetarian: Optional[bool] = None
    is_special_item: Optional[bool] = None
    is_available: Optional[bool] = None
    image_url: Optional[str] = None
    preparation_time: Optional[int] = Field(None, ge=1, le=600)

    @field_validator("variants")
    @classmethod
    def check_variants(cls, v: Optional[List[Variant]]) -> Optional[List[Variant]]:
        return _unique_variant_names(v)


class AvailabilityUpdate(APIModel):
    is_available: bool


class MenuItemResponse(APIModel):
    menu_id: str = Field(..., alias="menuID")
    res_id: str = Field(..., alias="resID")
    category_id: Optional[int] = None
    category: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float
    variants: List[Variant] = Field(default_factory=list)
    tax_percentage: Optional[float] = None
    is_vegetarian: bool
    is_special_item: bool
    is_available: bool
    image_url: Optional[str] = None
    preparation_time: Optional[int] = None

    @field_validator("category", mode="before")
    @classmethod
    def category_name(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return getattr(v, "name", None)


class PublicMenuItem(APIModel):
    menu_id: str = Field(..., alias="menuID")
    name: str
    description: Optional[str] = None
    price: float
    base_price: float
    variants: List[Variant] = Field(default_factory=list)
    tax_percentage: Optional[float] = None
    is_vegetarian: bool
    is_special_item: bool
    image_url: Optional[str] = None
    preparation_time: Optional[int] = None


class PublicQRCode(APIModel):
    qr_id: str = Field(..., alias="qrID")
    table_number: str
    label: Optional[str] = None


class PublicMenu(APIModel):
    restaurant: PublicRestaurant
    qr_code: PublicQRCode
    menu: dict[str, List[PublicMenuItem]]


# =============================================================================
# QR CODES
# =============================================================================

class QRCodeCreate(APIModel):
    res_id: Optional[str] = Field(None, alias="resID")
    table_number: str = Field(..., min_length=1, max_length=20, examples=["T4"])
    label: Optional[str] = Field(None, max_length=100)
    is_active: bool = True


class QRCodeUpdate(APIModel):
    table_number: Optional[str] = Field(None, min_length=1, max_length=20)
    label: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class QRCodeResponse(APIModel):
    qr_id: str = Field(..., alias="qrID")
    res_id: str = Field(..., alias="resID")
    table_number: str
    label: Optional[str] = None
    is_active: bool
    scan_count: int
    last_scanned_at: Optional[datetime] = None
    menu_url: Optional[str] = None


# =============================================================================
# BANNERS
# =============================================================================

class BannerCreate(APIModel):
    res_id: Optional[str] = Field(None, alias="resID")
    title: str = Field(..., min_length=1, max_length=120)
    subtitle: Optional[str] = Field(None, max_length=255)
    image_url: str = Field(..., min_length=1, max_length=500)
    link_url: Optional[str] = Field(None, max_length=500)
    sort_order: int = 0
    is_active: bool = True


class BannerUpdate(APIModel):
    title: Optional[str] = Field(None, min_length=1, max_length=120)
    subtitle: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = Field(None, min_length=1, max_length=500)
    link_url: Optional[str] = Field(None, max_length=500)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class BannerResponse(APIModel):
    id: int
    res_id: str = Field(..., alias="resID")
    title: str
    subtitle: Optional[str] = None
    image_url: str
    link_url: Optional[str] = None
    sort_order: int
    is_active: bool


# =============================================================================
# ORDERS
# =============================================================================

class CustomerInfo(APIModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Asha Rao"])
    phone: str = Field(..., min_length=7, max_length=20, examples=["+919876543210"])
    email: Optional[str] = Field(None, examples=["asha@example.com"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        cleaned = re.sub(r"[^\d]", "", v)
        if len(cleaned) < 7:
            raise ValueError("Phone number must have at least 7 digits")
        return v.strip()

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        if not re.match(r"^[\w\.\+-]+@[\w\.-]+\.\w+$", v.strip()):
            raise ValueError("Invalid email format")
        return v.strip()


class OrderItemCreate(APIModel):
    """Single line of an order as sent by the guest."""
    menu_id: str = Field(..., alias="menuID", min_length=1)
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    variant_name: Optional[str] = Field(None, max_length=80)
    special_instructions: Optional[str] = Field(None, max_length=200)

    @field_validator("variant_name")
    @classmethod
    def blank_variant(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class OrderCreate(APIModel):
    """Request schema for placing an order from a QR menu."""
    res_id: str = Field(..., alias="resID", min_length=1)
    qr_id: str = Field(..., alias="qrID", min_length=1)
    customer: CustomerInfo
    items: List[OrderItemCreate] = Field(..., min_length=1)
    special_request: Optional[str] = Field(None, max_length=500)


class OrderItemResponse(APIModel):
    menu_id: str = Field(..., alias="menuID")
    name: str
    variant_name: Optional[str] = None
    unit_price: float
    quantity: int
    tax_percentage: float
    special_instructions: Optional[str] = None
    line_total: float


class OrderPlaced(APIModel):
    """Confirmation data returned to the guest."""
    order_id: str = Field(..., alias="orderID")
    status: OrderStatus
    created_at: datetime
    estimated_time: int
    table_number: Optional[str] = None
    items: List[OrderItemResponse]
    subtotal: float
    tax: float
    total: float


class OrderTracking(APIModel):
    order_id: str = Field(..., alias="orderID")
    status: OrderStatus
    estimated_time: int
    table_number: Optional[str] = None
    subtotal: float
    tax: float
    total: float
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderResponse(APIModel):
    """Full order as seen by restaurant staff."""
    order_id: str = Field(..., alias="orderID")
    res_id: str = Field(..., alias="resID")
    qr_id: str = Field(..., alias="qrID")
    table_number: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    special_request: Optional[str] = None
    items: List[OrderItemResponse]
    subtotal: float
    tax: float
    total: float
    status: OrderStatus
    estimated_time: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderListResponse(APIModel):
    success: bool = True
    total: int
    orders: List[OrderResponse]


class OrderStatusUpdate(APIModel):
    status: str

    @field_validator("status")
    @classmethod
    def normalize(cls, v: str) -> str:
        return v.strip().lower()


# =============================================================================
# AUTH / STAFF USERS
# =============================================================================

class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(APIModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)


class StaffUserResponse(APIModel):
    id: int
    name: str
    email: str
    role: UserRole
    res_id: Optional[str] = Field(None, alias="resID")
    is_active: bool


class TokenResponse(APIModel):
    success: bool = True
    token: str
    user: StaffUserResponse


class SubadminCreate(APIModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    res_id: str = Field(..., alias="resID")


class SubadminUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    res_id: Optional[str] = Field(None, alias="resID")
    is_active: Optional[bool] = None


# =============================================================================
# UPLOADS
# =============================================================================

class UploadedImage(APIModel):
    url: str
    public_id: str
    # 400x300 delivery URL for menu cards
    optimized_url: Optional[str] = None


class ImageDeleteRequest(APIModel):
    url: Optional[str] = None
    public_id: Optional[str] = None


# =============================================================================
# DASHBOARDS / HEALTH
# =============================================================================

class AdminStats(APIModel):
    restaurants: int
    active_restaurants: int
    subadmins: int
    orders: int
    revenue: float


class RestaurantDashboard(APIModel):
    res_id: str = Field(..., alias="resID")
    total_orders: int
    orders_by_status: dict[str, int]
    today_orders: int
    today_revenue: float
    avg_order_value: float
    recent_orders: List[OrderResponse]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime
    uptime: float
    database: str
    redis: str
