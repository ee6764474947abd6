"""Cart store: local, persisted cart lines for the current client."""
import dataclasses
import threading
from decimal import Decimal
from typing import Iterable, List, Optional

from mall_client.logging import get_logger
from mall_client.services.money import round_money
from .models import CartItem, CartSnapshot, coerce_specs, normalize_specs
from .storage import KeyValueStorage, StorageKeys

logger = get_logger(__name__)


class CartStore:
    """
    Owns the cart lines of one client identity.

    Every mutation persists the full item list. Operations addressed by id
    are silent no-ops when the line is gone: UI races such as
    remove-then-toggle are expected and must not raise.

    Usage:
        cart = CartStore(storage)
        cart.add_item(id=1, product_id=10, name="Tee", image="", price="9.90",
                      sku="TEE-S", quantity=2, stock=5)
        cart.update_quantity(1, 3)
        cart.snapshot().selected_total
    """

    def __init__(self, storage: KeyValueStorage, keys: Optional[StorageKeys] = None):
        self._storage = storage
        self._keys = keys or StorageKeys()
        self._lock = threading.RLock()
        self._items: List[CartItem] = self._load()

    def _load(self) -> List[CartItem]:
        raw = self._storage.get(self._keys.cart_items)
        if not raw:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring stored cart of type %s", type(raw).__name__)
            return []

        items = []
        for entry in raw:
            try:
                items.append(CartItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupted cart line %r: %s", entry, e)
        return items

    def _save(self) -> None:
        self._storage.set(self._keys.cart_items, [item.to_dict() for item in self._items])

    def _find(self, item_id) -> Optional[CartItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def reload(self) -> None:
        """Re-read the cart from storage, dropping in-memory state."""
        with self._lock:
            self._items = self._load()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(
        self,
        *,
        id,
        product_id,
        name: str,
        image: str,
        price,
        sku: str,
        quantity: int,
        stock: int,
        specs: Optional[Iterable] = None,
    ) -> Optional[CartItem]:
        """
        Add a line, merging into an existing one with the same product and specs.

        A merge only accumulates quantity; stock is enforced later by
        update_quantity. A non-positive quantity, or an id already used by a
        different line, leaves the cart unchanged.

        Returns:
            The new or merged line, or None if nothing was added
        """
        if quantity < 1:
            logger.warning("Ignoring add of product %s with quantity %s", product_id, quantity)
            return None

        specs = coerce_specs(specs)
        with self._lock:
            key = (product_id, normalize_specs(specs))
            existing = next((item for item in self._items if item.dedupe_key == key), None)

            if existing:
                existing.quantity += quantity
                item = existing
            elif self._find(id) is not None:
                logger.warning("Ignoring add of product %s: cart line id %s is taken", product_id, id)
                return None
            else:
                item = CartItem(
                    id=id,
                    product_id=product_id,
                    name=name,
                    image=image,
                    price=price,
                    sku=sku,
                    quantity=quantity,
                    stock=stock,
                    selected=True,
                    specs=specs,
                )
                self._items.append(item)

            self._save()
            return dataclasses.replace(item)

    def update_quantity(self, item_id, quantity: int) -> None:
        """Set a line's quantity clamped into [1, stock]."""
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return
            item.quantity = max(1, min(quantity, item.stock))
            self._save()

    def remove_item(self, item_id) -> None:
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return
            self._items.remove(item)
            self._save()

    def toggle_select(self, item_id) -> None:
        with self._lock:
            item = self._find(item_id)
            if item is None:
                return
            item.selected = not item.selected
            self._save()

    def toggle_select_all(self) -> None:
        """Deselect everything if all lines are selected, otherwise select all."""
        with self._lock:
            select = not self.is_all_selected
            for item in self._items:
                item.selected = select
            self._save()

    def clear(self) -> None:
        with self._lock:
            self._items = []
            self._save()

    def remove_selected(self) -> None:
        """Drop selected lines, typically after checkout."""
        with self._lock:
            self._items = [item for item in self._items if not item.selected]
            self._save()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[CartItem]:
        """Copies of all lines; mutating them does not touch the store."""
        with self._lock:
            return [dataclasses.replace(item) for item in self._items]

    def get_item(self, item_id) -> Optional[CartItem]:
        with self._lock:
            item = self._find(item_id)
            return dataclasses.replace(item) if item else None

    def __len__(self) -> int:
        return len(self._items)

    @property
    def total_count(self) -> int:
        """Total quantity across all lines."""
        return sum(item.quantity for item in self._items)

    @property
    def selected_count(self) -> int:
        return sum(item.quantity for item in self._items if item.selected)

    @property
    def selected_total(self) -> Decimal:
        """Sum of price x quantity over selected lines."""
        total = sum((item.subtotal for item in self._items if item.selected), Decimal("0"))
        return round_money(total)

    @property
    def is_all_selected(self) -> bool:
        """True only for a non-empty cart with every line selected."""
        return bool(self._items) and all(item.selected for item in self._items)

    @property
    def selected_items(self) -> List[CartItem]:
        return [dataclasses.replace(item) for item in self._items if item.selected]

    def snapshot(self) -> CartSnapshot:
        with self._lock:
            return CartSnapshot(
                total_count=self.total_count,
                selected_count=self.selected_count,
                selected_total=self.selected_total,
                is_all_selected=self.is_all_selected,
                selected_items=self.selected_items,
            )
