"""
Client-local storage and the Cart Store.

The cart lives entirely on the client: it is loaded from local storage on
construction and written back after every mutation. The server only sees
it at checkout, as a flat snapshot of line items.
"""
import json
import logging
import os
from typing import Dict, List, Optional

from pydantic import ValidationError

from pricing import items_total, product_price
from schemas import CartItem

logger = logging.getLogger(__name__)

CART_KEY = "cart"


class MemoryStorage:
    """String key-value scope, like a browser's localStorage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str):
        self._data[key] = value

    def remove_item(self, key: str):
        self._data.pop(key, None)


class JsonFileStorage(MemoryStorage):
    """MemoryStorage that survives restarts in a single JSON file."""

    def __init__(self, path: str):
        self.path = path
        initial = {}
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    initial = json.load(f)
            except json.JSONDecodeError:
                logger.warning("Local storage file %s is corrupt, starting empty", path)
        super().__init__(initial)

    def _flush(self):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False)

    def set_item(self, key: str, value: str):
        super().set_item(key, value)
        self._flush()

    def remove_item(self, key: str):
        super().remove_item(key)
        self._flush()


def load_json(storage: MemoryStorage, key: str) -> list:
    raw = storage.get_item(key)
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return value if isinstance(value, list) else []


class CartStore:
    """Ordered line items, one per distinct product id."""

    def __init__(self, storage: MemoryStorage, key: str = CART_KEY):
        self.storage = storage
        self.key = key
        self.items: List[CartItem] = []
        for raw in load_json(storage, key):
            try:
                self.items.append(CartItem.model_validate(raw))
            except ValidationError:
                logger.warning("Dropping unreadable cart line: %r", raw)

    def _save(self):
        self.storage.set_item(self.key, json.dumps(self.snapshot(), ensure_ascii=False))

    def find(self, product_id: int) -> Optional[CartItem]:
        return next((i for i in self.items if i.product_id == product_id), None)

    def add(self, product) -> CartItem:
        """Add one unit. An existing line keeps its original price snapshot."""
        item = self.find(product.id)
        if item is not None:
            item.quantity += 1
        else:
            item = CartItem(
                product_id=product.id,
                name=product.name,
                price=product_price(product),
                quantity=1,
                image=product.image,
            )
            self.items.append(item)
        self._save()
        return item

    def remove(self, product_id: int):
        self.items = [i for i in self.items if i.product_id != product_id]
        self._save()

    def change_quantity(self, product_id: int, delta: int):
        item = self.find(product_id)
        if item is None:
            return
        if item.quantity + delta <= 0:
            self.remove(product_id)
            return
        item.quantity += delta
        self._save()

    def total(self) -> float:
        return items_total(self.items)

    def count(self) -> int:
        """Total units across all lines."""
        return sum(i.quantity for i in self.items)

    def clear(self):
        self.items = []
        self._save()

    def snapshot(self) -> List[dict]:
        return [i.to_record() for i in self.items]

    def __len__(self):
        return len(self.items)
