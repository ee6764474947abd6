"""Cart models with Decimal-based pricing."""
import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from mall_client.services.money import format_price, to_decimal


@dataclass(frozen=True)
class CartSpec:
    """One selected product option, e.g. color=red."""
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "CartSpec":
        return cls(name=str(data["name"]), value=str(data["value"]))


def coerce_specs(specs: Optional[Iterable]) -> Optional[List[CartSpec]]:
    """Accept CartSpec objects, dicts or (name, value) pairs."""
    if specs is None:
        return None
    result = []
    for spec in specs:
        if isinstance(spec, CartSpec):
            result.append(spec)
        elif isinstance(spec, dict):
            result.append(CartSpec.from_dict(spec))
        else:
            name, value = spec
            result.append(CartSpec(name=str(name), value=str(value)))
    return result


def normalize_specs(specs: Optional[Iterable]) -> str:
    """
    Stable, order-insensitive serialization of a spec set.

    None and [] normalize identically; duplicate pairs collapse.
    """
    pairs = sorted({(s.name, s.value) for s in coerce_specs(specs) or []})
    return json.dumps(pairs, ensure_ascii=False, separators=(",", ":"))


@dataclass
class CartItem:
    """One purchasable configuration in the cart."""
    id: int | str
    product_id: int | str
    name: str
    image: str
    price: Decimal
    sku: str
    quantity: int
    stock: int
    selected: bool = True
    specs: Optional[List[CartSpec]] = None

    def __post_init__(self):
        self.price = to_decimal(self.price)
        self.specs = coerce_specs(self.specs)

    @property
    def dedupe_key(self) -> tuple:
        """(product_id, normalized specs): identity of a logical cart line."""
        return (self.product_id, normalize_specs(self.specs))

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        """Convert to the persisted JSON form."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "image": self.image,
            "price": str(self.price),
            "sku": self.sku,
            "quantity": self.quantity,
            "selected": self.selected,
            "stock": self.stock,
            "specs": [s.to_dict() for s in self.specs] if self.specs is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """Create from the persisted JSON form."""
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            name=data.get("name", ""),
            image=data.get("image", ""),
            price=to_decimal(data.get("price")),
            sku=data.get("sku", ""),
            quantity=int(data["quantity"]),
            stock=int(data.get("stock", 0)),
            selected=bool(data.get("selected", True)),
            specs=data.get("specs"),
        )


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only aggregates of the cart, recomputed on every read."""
    total_count: int
    selected_count: int
    selected_total: Decimal
    is_all_selected: bool
    selected_items: List[CartItem] = field(default_factory=list)

    @property
    def display_total(self) -> str:
        """Selected total as shown at checkout, e.g. "30.05"."""
        return format_price(self.selected_total)
