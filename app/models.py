"""
SQLAlchemy Database Models

Records for the QR ordering system:
- Restaurants, categories and menu items (with priced variants)
- QR codes linking a restaurant to a table
- Orders with their line items
- Staff users (admins and restaurant subadmins)
- Promotional banners
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base, utcnow


class OrderStatus(str, enum.Enum):
    """Order status values. Any status may be set by staff."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    SUBADMIN = "subadmin"


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    res_id = Column(String(40), unique=True, nullable=False, index=True)

    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    currency = Column(String(10), nullable=False, default="INR")
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Restaurant {self.res_id} - {self.name}>"


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("res_id", "name", name="uq_category_restaurant_name"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(80), nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Category {self.id} - {self.name}>"


class MenuItem(Base):
    """
    A dish on a restaurant menu.

    `price` is the base price. `variants` is a JSON list of
    {"name", "price", "isAvailable"} objects; when present, guests order
    a specific variant and pay its price.
    """
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    menu_id = Column(String(40), unique=True, nullable=False, index=True)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    variants = Column(JSON, nullable=False, default=list)
    tax_percentage = Column(Float, nullable=True)

    is_vegetarian = Column(Boolean, nullable=False, default=False)
    is_special_item = Column(Boolean, nullable=False, default=False)
    is_available = Column(Boolean, nullable=False, default=True)
    image_url = Column(String(500), nullable=True)
    preparation_time = Column(Integer, nullable=True)  # minutes

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    category = relationship("Category", lazy="selectin")

    def find_variant(self, name: str):
        for variant in self.variants or []:
            if variant.get("name") == name:
                return variant
        return None

    def __repr__(self):
        return f"<MenuItem {self.menu_id} - {self.name}>"


class QRCode(Base):
    """Associates a restaurant with a table (or any other ordering point)."""
    __tablename__ = "qr_codes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    qr_id = Column(String(40), unique=True, nullable=False, index=True)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="CASCADE"), nullable=False, index=True)
    table_number = Column(String(20), nullable=False)
    label = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    scan_count = Column(Integer, nullable=False, default=0)
    last_scanned_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<QRCode {self.qr_id} - table {self.table_number}>"


class Order(Base):
    """A guest order placed from a QR code menu."""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(String(40), unique=True, nullable=False, index=True)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="CASCADE"), nullable=False, index=True)
    qr_id = Column(String(40), nullable=False, index=True)
    table_number = Column(String(20), nullable=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False, index=True)
    customer_email = Column(String(255), nullable=True)
    special_request = Column(Text, nullable=True)

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)
    total = Column(Float, nullable=False)

    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    estimated_time = Column(Integer, nullable=False)  # minutes

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    items = relationship(
        "OrderItem",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order {self.order_id} - {self.customer_name} - {self.status.value}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_pk = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    menu_id = Column(String(40), nullable=False)
    name = Column(String(120), nullable=False)
    variant_name = Column(String(80), nullable=True)
    unit_price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False)
    tax_percentage = Column(Float, nullable=False)
    special_instructions = Column(Text, nullable=True)
    line_total = Column(Float, nullable=False)


class StaffUser(Base):
    """Admin (all restaurants) or subadmin (one restaurant)."""
    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.SUBADMIN)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<StaffUser {self.email} ({self.role.value})>"


class Banner(Base):
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    res_id = Column(String(40), ForeignKey("restaurants.res_id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(120), nullable=False)
    subtitle = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=False)
    link_url = Column(String(500), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
