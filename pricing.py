"""
Pricing Engine: the one place a displayed or captured price is computed.
"""
from typing import Iterable


def effective_price(base_price: float, discount_percent: float = 0) -> float:
    """Base price after the discount percentage; unchanged when there is no discount."""
    if discount_percent and discount_percent > 0:
        return base_price * (1 - discount_percent / 100)
    return base_price


def product_price(product) -> float:
    """Effective price of a Product (or anything with ``price`` and ``discount``)."""
    return effective_price(product.price, product.discount)


def line_total(unit_price: float, quantity: int) -> float:
    return unit_price * quantity


def items_total(items: Iterable) -> float:
    """Sum of price snapshot x quantity over cart line items."""
    return sum(line_total(item.price, item.quantity) for item in items)
