"""
Guest Cart

Client-held cart for a single restaurant table. Lines are keyed by
menu item id, or "menuID:variantName" for a variant, so adding the same
item/variant again bumps its quantity instead of adding a second line.

The cart is persisted per (resID, qrID) as JSON so a guest who reloads
the menu keeps their selection. It only reaches the server at checkout.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from app.services.pricing import (
    DEFAULT_TAX_PERCENTAGE,
    PricedLine,
    Totals,
    calculate_totals,
    is_variant_available,
    lowest_available_price,
)

logger = logging.getLogger(__name__)

VARIANT_SEPARATOR = ":"
ALL_CATEGORIES = "All"


def cart_key(menu_id: str, variant_name: Optional[str] = None) -> str:
    if variant_name:
        return f"{menu_id}{VARIANT_SEPARATOR}{variant_name}"
    return menu_id


def split_cart_key(key: str) -> tuple[str, Optional[str]]:
    menu_id, _, variant_name = str(key).partition(VARIANT_SEPARATOR)
    return menu_id, (variant_name or None)


# =============================================================================
# MENU ENTRIES
# =============================================================================

@dataclass
class MenuEntry:
    """A menu item as the guest sees it (one row of the flattened menu)."""
    menu_id: str
    name: str
    category: str
    price: float
    variants: list[dict[str, Any]] = field(default_factory=list)
    tax_percentage: Optional[float] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_vegetarian: bool = False
    is_special_item: bool = False

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    @property
    def available_variants(self) -> list[dict[str, Any]]:
        return [v for v in self.variants if is_variant_available(v)]

    @property
    def lowest_price(self) -> float:
        return lowest_available_price(self.price, self.variants)

    def variant(self, name: str) -> Optional[dict[str, Any]]:
        for v in self.available_variants:
            if v.get("name") == name:
                return v
        return None

    @classmethod
    def from_api(cls, category: str, data: dict[str, Any]) -> "MenuEntry":
        base = data.get("basePrice")
        if base is None:
            base = data.get("price")
        return cls(
            menu_id=data["menuID"],
            name=data.get("name", ""),
            category=category,
            price=float(base or 0),
            variants=list(data.get("variants") or []),
            tax_percentage=data.get("taxPercentage"),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
            is_vegetarian=bool(data.get("isVegetarian")),
            is_special_item=bool(data.get("isSpecialItem")),
        )


def flatten_menu(menu: dict[str, list[dict[str, Any]]]) -> list[MenuEntry]:
    """Flatten {category: [items]} into entries, special items first, then by name."""
    entries = [
        MenuEntry.from_api(category, item)
        for category, items in (menu or {}).items()
        for item in (items or [])
    ]
    entries.sort(key=lambda e: (not e.is_special_item, e.name))
    return entries


def menu_categories(menu: dict[str, Any]) -> list[str]:
    return [ALL_CATEGORIES, *(menu or {}).keys()]


def filter_entries(
    entries: Iterable[MenuEntry],
    category: str = ALL_CATEGORIES,
    vegetarian_only: bool = False,
) -> list[MenuEntry]:
    result = list(entries)
    if category != ALL_CATEGORIES:
        result = [e for e in result if e.category == category]
    if vegetarian_only:
        result = [e for e in result if e.is_vegetarian]
    return result


# =============================================================================
# CART
# =============================================================================

@dataclass
class CartLine:
    key: str
    name: str
    price: float
    quantity: int
    tax_percentage: Optional[float] = None
    special_instructions: str = ""

    @property
    def menu_id(self) -> str:
        return split_cart_key(self.key)[0]

    @property
    def variant_name(self) -> Optional[str]:
        return split_cart_key(self.key)[1]

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class Cart:
    """Ordered collection of cart lines, at most one line per key."""

    def __init__(
        self,
        lines: Optional[Iterable[CartLine]] = None,
        default_tax_percentage: float = DEFAULT_TAX_PERCENTAGE,
    ):
        self.default_tax_percentage = default_tax_percentage
        self._lines: list[CartLine] = []
        for line in lines or []:
            existing = self.get(line.key)
            if existing:
                existing.quantity += line.quantity
            elif line.quantity > 0:
                self._lines.append(line)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get(self, key: str) -> Optional[CartLine]:
        for line in self._lines:
            if line.key == key:
                return line
        return None

    def add(
        self,
        entry: MenuEntry,
        variant: Optional[str] = None,
        quantity: int = 1,
    ) -> CartLine:
        """
        Add `quantity` units of an item (or one of its variants).

        Raises:
            ValueError: unknown/unavailable variant, a variant is required,
                or quantity is not positive
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        if variant is not None:
            chosen = entry.variant(variant)
            if chosen is None:
                raise ValueError(f"Variant '{variant}' is not available for {entry.name}")
            key = cart_key(entry.menu_id, variant)
            name = f"{entry.name} - {variant}"
            price = float(chosen.get("price") or 0)
        else:
            if entry.has_variants:
                raise ValueError(f"{entry.name} must be ordered as one of its variants")
            key = cart_key(entry.menu_id)
            name = entry.name
            price = entry.price

        existing = self.get(key)
        if existing:
            existing.quantity += quantity
            return existing

        line = CartLine(
            key=key,
            name=name,
            price=price,
            quantity=quantity,
            tax_percentage=entry.tax_percentage,
        )
        self._lines.append(line)
        return line

    def set_quantity(self, key: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove(key)
            return
        line = self.get(key)
        if line is None:
            raise KeyError(key)
        line.quantity = quantity

    def decrement(self, key: str) -> None:
        line = self.get(key)
        if line is None:
            raise KeyError(key)
        self.set_quantity(key, line.quantity - 1)

    def remove(self, key: str) -> None:
        self._lines = [line for line in self._lines if line.key != key]

    def clear(self) -> None:
        self._lines = []

    def set_instructions(self, key: str, text: str) -> None:
        line = self.get(key)
        if line is None:
            raise KeyError(key)
        line.special_instructions = text

    # -------------------------------------------------------------------------
    # Calculations
    # -------------------------------------------------------------------------

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines)

    def totals(self) -> Totals:
        return calculate_totals(
            (PricedLine(line.price, line.quantity, line.tax_percentage) for line in self._lines),
            self.default_tax_percentage,
        )

    @property
    def subtotal(self) -> float:
        return self.totals().subtotal

    @property
    def tax(self) -> float:
        return self.totals().tax

    @property
    def total(self) -> float:
        return self.totals().total

    def quantities(self) -> dict[str, int]:
        return {line.key: line.quantity for line in self._lines}

    def variant_quantity(self, menu_id: str) -> int:
        """Units across every variant of one parent item."""
        prefix = f"{menu_id}{VARIANT_SEPARATOR}"
        return sum(line.quantity for line in self._lines if line.key.startswith(prefix))

    def to_order_items(self) -> list[dict[str, Any]]:
        items = []
        for line in self._lines:
            menu_id, variant_name = split_cart_key(line.key)
            item: dict[str, Any] = {
                "menuID": menu_id,
                "quantity": line.quantity,
                "specialInstructions": line.special_instructions or "",
            }
            if variant_name:
                item["variantName"] = variant_name
            items.append(item)
        return items

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_list(self) -> list[dict[str, Any]]:
        return [asdict(line) for line in self._lines]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]], **kwargs) -> "Cart":
        lines = [
            CartLine(
                key=str(row["key"]),
                name=row.get("name", ""),
                price=float(row.get("price", 0)),
                quantity=int(row.get("quantity", 0)),
                tax_percentage=row.get("tax_percentage"),
                special_instructions=row.get("special_instructions", ""),
            )
            for row in data
        ]
        return cls(lines, **kwargs)


class CartStore:
    """JSON-file persistence for carts, one file per restaurant table."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    @staticmethod
    def storage_key(res_id: str, qr_id: str) -> str:
        return f"qr_cart_{res_id}_{qr_id}"

    def path_for(self, res_id: str, qr_id: str) -> Path:
        return self.directory / f"{self.storage_key(res_id, qr_id)}.json"

    def load(self, res_id: str, qr_id: str, **cart_kwargs) -> Cart:
        path = self.path_for(res_id, qr_id)
        if not path.exists():
            return Cart(**cart_kwargs)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError("cart file does not contain a list")
            return Cart.from_list(data, **cart_kwargs)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load cart from {path}: {e}")
            return Cart(**cart_kwargs)

    def save(self, res_id: str, qr_id: str, cart: Cart) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(res_id, qr_id)
        path.write_text(json.dumps(cart.to_list()), encoding="utf-8")
        return path

    def delete(self, res_id: str, qr_id: str) -> None:
        path = self.path_for(res_id, qr_id)
        if path.exists():
            path.unlink()
