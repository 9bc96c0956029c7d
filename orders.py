"""
Order Assembler: turns a submitted cart snapshot into a persisted order.

Nothing in the submission is checked against the catalog: unknown
product ids are skipped when counting purchases, the submitted total is
stored as given, and the user id is not looked up. Product stats are
written before the order is appended; the two writes are not
transactional, so a failure on the second leaves the first in place.
"""
import logging
from datetime import datetime, timezone
from typing import List

from database import ORDERS, PRODUCTS, Store
from inventory import InventoryStatsTracker
from schemas import CartItem, Order, OrderCreate, StatsSummary

logger = logging.getLogger(__name__)


class OrderAssembler:

    def __init__(self, store: Store):
        self.store = store
        self.stats = InventoryStatsTracker(store)

    def create_order(self, user_id: int, items: List[CartItem], total: float) -> Order:
        with self.store.lock(ORDERS, PRODUCTS):
            products = self.store.read(PRODUCTS)
            skipped = self.stats.apply_purchases(products, items)
            if skipped:
                logger.warning("Order for user %s references missing products %s", user_id, skipped)
            self.store.write(PRODUCTS, products)

            orders = self.store.read(ORDERS)
            order = Order(
                id=self.store.next_id(ORDERS),
                user_id=user_id,
                items=list(items),
                total=total,
                created_at=datetime.now(timezone.utc),
            )
            orders.append(order.to_record())
            self.store.write(ORDERS, orders)
        logger.info("Order %s created for user %s (total %s)", order.id, user_id, total)
        return order

    def submit(self, payload: OrderCreate) -> Order:
        return self.create_order(payload.user_id, payload.items, payload.total)

    def orders_for_user(self, user_id: int) -> List[Order]:
        return [
            Order.model_validate(o)
            for o in self.store.read(ORDERS)
            if o.get("userId") == user_id
        ]

    def summary(self) -> StatsSummary:
        orders = self.store.read(ORDERS)
        return StatsSummary(
            total_revenue=sum(o.get("total", 0) for o in orders),
            total_orders=len(orders),
            top_products=self.stats.top_products(5),
        )
