"""
Inventory Stats Tracker: purchased / favorited counters on each product.
"""
import logging
from typing import Iterable, List

from database import PRODUCTS, Store
from errors import NotFound
from schemas import CartItem, Product

logger = logging.getLogger(__name__)

PURCHASED = "purchased"
FAVORITED = "favorited"


def bump(stats: dict, field: str, delta: int) -> int:
    """Apply ``delta`` to one counter, floored at zero."""
    stats[field] = max(0, int(stats.get(field, 0)) + delta)
    return stats[field]


class InventoryStatsTracker:

    def __init__(self, store: Store):
        self.store = store

    def apply_purchases(self, products: List[dict], items: Iterable[CartItem]) -> List[int]:
        """Add ordered quantities to ``purchased`` in an already-loaded product list.

        Lines whose product no longer exists are skipped; their ids are
        returned. The caller writes ``products`` back while holding the
        products lock.
        """
        by_id = {p.get("id"): p for p in products}
        skipped = []
        for item in items:
            product = by_id.get(item.product_id)
            if product is None:
                skipped.append(item.product_id)
                continue
            bump(product.setdefault("stats", {}), PURCHASED, item.quantity)
        return skipped

    def adjust_favorites(self, product_id: int, change: int) -> Product:
        with self.store.lock(PRODUCTS):
            products = self.store.read(PRODUCTS)
            for record in products:
                if record.get("id") == product_id:
                    bump(record.setdefault("stats", {}), FAVORITED, change)
                    self.store.write(PRODUCTS, products)
                    return Product.model_validate(record)
        raise NotFound("Product not found")

    def top_products(self, limit: int = 5) -> List[Product]:
        """Best sellers by purchased count, highest first."""
        products = [Product.model_validate(p) for p in self.store.read(PRODUCTS)]
        products.sort(key=lambda p: p.stats.purchased, reverse=True)
        return products[:limit]
