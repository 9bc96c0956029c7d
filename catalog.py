"""
Catalog: product and category management plus the Catalog Filter.
"""
import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from database import CATEGORIES, PRODUCTS, Store
from errors import Malformed, NotFound
from pricing import product_price
from schemas import (
    Category, CategoryCreate, Product, ProductCreate, ProductPatch, ProductStats,
    ProductView,
)

logger = logging.getLogger(__name__)


def build_views(products: Iterable[Product], categories: Iterable[Category],
                category_id: Optional[int] = None) -> List[ProductView]:
    """Join products with their category and price them for display.

    ``category_id=None`` means every product. Insertion order is kept.
    """
    by_id = {c.id: c for c in categories}
    return [
        ProductView(
            **p.model_dump(),
            final_price=product_price(p),
            category=by_id.get(p.category_id),
        )
        for p in products
        if category_id is None or p.category_id == category_id
    ]


def view_record(view: ProductView) -> dict:
    """Wire shape of a view; a dangling category is left out entirely."""
    record = view.to_record()
    if view.category is None:
        record.pop("category", None)
    return record


class ProductCatalog:

    def __init__(self, store: Store):
        self.store = store

    # Reads

    def products(self) -> List[Product]:
        return [Product.model_validate(p) for p in self.store.read(PRODUCTS)]

    def categories(self) -> List[Category]:
        return [Category.model_validate(c) for c in self.store.read(CATEGORIES)]

    def list_products(self, category_id: Optional[int] = None) -> List[ProductView]:
        return build_views(self.products(), self.categories(), category_id)

    def get_product(self, product_id: int) -> Product:
        for product in self.products():
            if product.id == product_id:
                return product
        raise NotFound("Product not found")

    # Products

    def create_product(self, data: ProductCreate) -> Product:
        with self.store.lock(PRODUCTS):
            products = self.store.read(PRODUCTS)
            product = Product(
                id=self.store.next_id(PRODUCTS),
                stats=ProductStats(),
                **data.model_dump(),
            )
            products.append(product.to_record())
            self.store.write(PRODUCTS, products)
        logger.info("Product %s created: %s", product.id, product.name)
        return product

    def update_product(self, product_id: int, patch: ProductPatch) -> Product:
        changes = patch.model_dump(exclude_unset=True)
        with self.store.lock(PRODUCTS):
            products = self.store.read(PRODUCTS)
            for index, record in enumerate(products):
                if record.get("id") != product_id:
                    continue
                current = Product.model_validate(record)
                updated = current.model_copy(update=changes)
                # model_copy skips validation, so re-check the merged record
                try:
                    updated = Product.model_validate(updated.model_dump())
                except ValidationError as exc:
                    raise Malformed(f"Invalid product update: {exc.error_count()} errors") from exc
                products[index] = updated.to_record()
                self.store.write(PRODUCTS, products)
                return updated
        raise NotFound("Product not found")

    def delete_product(self, product_id: int):
        with self.store.lock(PRODUCTS):
            products = self.store.read(PRODUCTS)
            remaining = [p for p in products if p.get("id") != product_id]
            if len(remaining) == len(products):
                raise NotFound("Product not found")
            self.store.write(PRODUCTS, remaining)
        logger.info("Product %s deleted", product_id)

    # Categories

    def create_category(self, data: CategoryCreate) -> Category:
        with self.store.lock(CATEGORIES):
            categories = self.store.read(CATEGORIES)
            category = Category(id=self.store.next_id(CATEGORIES), name=data.name)
            categories.append(category.to_record())
            self.store.write(CATEGORIES, categories)
        logger.info("Category %s created: %s", category.id, category.name)
        return category

    def delete_category(self, category_id: int) -> int:
        """Delete a category and every product in it; returns the product count removed."""
        with self.store.lock(CATEGORIES, PRODUCTS):
            categories = self.store.read(CATEGORIES)
            remaining = [c for c in categories if c.get("id") != category_id]
            if len(remaining) == len(categories):
                raise NotFound("Category not found")
            products = self.store.read(PRODUCTS)
            kept = [p for p in products if p.get("categoryId") != category_id]
            self.store.write(CATEGORIES, remaining)
            self.store.write(PRODUCTS, kept)
        removed = len(products) - len(kept)
        logger.info("Category %s deleted with %d products", category_id, removed)
        return removed


class CatalogFilter:
    """Client-side category selection over a loaded catalog."""

    def __init__(self, products: List[Product] = None, categories: List[Category] = None):
        self.products = list(products or [])
        self.categories = list(categories or [])
        self.selected_category: Optional[int] = None

    def load(self, products: List[Product], categories: List[Category]):
        self.products = list(products)
        self.categories = list(categories)

    def select(self, category_id: Optional[int] = None) -> List[ProductView]:
        """Show one category, or everything when ``category_id`` is None."""
        self.selected_category = category_id
        return self.visible()

    def visible(self) -> List[ProductView]:
        return build_views(self.products, self.categories, self.selected_category)

    def find(self, product_id: int) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)
