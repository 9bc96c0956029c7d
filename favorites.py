"""
Client-local favorites list.

The list is kept under one storage key regardless of who is logged in;
each toggle reports the +1/-1 to apply to the shared server-side
``favorited`` counter.
"""
import json
from typing import List

from cart import MemoryStorage, load_json

FAVORITES_KEY = "favorites"


class FavoritesStore:

    def __init__(self, storage: MemoryStorage, key: str = FAVORITES_KEY):
        self.storage = storage
        self.key = key
        self.items: List[dict] = load_json(storage, key)

    def _save(self):
        self.storage.set_item(self.key, json.dumps(self.items, ensure_ascii=False))

    def contains(self, product_id: int) -> bool:
        return any(fav.get("id") == product_id for fav in self.items)

    def toggle(self, product) -> int:
        """Add or remove ``product``; returns the counter delta (+1 or -1)."""
        if self.contains(product.id):
            self.items = [fav for fav in self.items if fav.get("id") != product.id]
            change = -1
        else:
            self.items.append(product.to_record())
            change = 1
        self._save()
        return change

    def remove(self, product_id: int):
        self.items = [fav for fav in self.items if fav.get("id") != product_id]
        self._save()

    def ids(self) -> List[int]:
        return [fav.get("id") for fav in self.items]
