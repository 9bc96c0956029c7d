"""
Storefront client: the browser-side flows, driven over the HTTP API.

Cart and favorites stay in client-local storage; the server is contacted
only to load the catalog, check out, move the favorites counter, post
reviews and read order history. Any failed call raises ClientError with
a generic message and leaves local state as it was.
"""
import logging
from typing import List, Optional

import httpx

from cart import CartStore, MemoryStorage
from catalog import CatalogFilter
from favorites import FavoritesStore
from identity import Session
from schemas import Category, Order, Product, ProductView, PublicUser, Review

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"


class ClientError(Exception):
    """User-facing failure; the message is safe to show as a notification."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorefrontClient:

    def __init__(self, http: Optional[httpx.Client] = None,
                 storage: Optional[MemoryStorage] = None):
        self.http = http or httpx.Client(base_url=DEFAULT_BASE_URL, timeout=10.0)
        self.storage = storage if storage is not None else MemoryStorage()
        self.session = Session(self.storage)
        self.cart = CartStore(self.storage)
        self.favorites = FavoritesStore(self.storage)
        self.catalog = CatalogFilter()

    def _request(self, method: str, url: str, failure: str, **kwargs):
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ClientError("Network error. Please try again later.") from exc
        if response.is_error:
            logger.warning("%s %s returned %s", method, url, response.status_code)
            raise ClientError(failure)
        return response.json()

    # Account

    def login(self, username: str, password: str) -> PublicUser:
        data = self._request("POST", "/api/login", "Invalid credentials",
                             json={"username": username, "password": password})
        user = PublicUser.model_validate(data["user"])
        self.session.login(user)
        return user

    def register(self, username: str, password: str, email: str = None) -> PublicUser:
        data = self._request("POST", "/api/register", "Registration failed",
                             json={"username": username, "password": password, "email": email})
        user = PublicUser.model_validate(data["user"])
        self.session.login(user)
        return user

    def logout(self):
        self.session.logout()

    # Catalog

    def load_catalog(self) -> List[ProductView]:
        categories = self._request("GET", "/api/categories", "Could not load categories")
        products = self._request("GET", "/api/products", "Could not load products")
        self.catalog.load(
            [Product.model_validate(p) for p in products],
            [Category.model_validate(c) for c in categories],
        )
        return self.catalog.visible()

    def select_category(self, category_id: Optional[int] = None) -> List[ProductView]:
        return self.catalog.select(category_id)

    def _product(self, product_id: int) -> Product:
        product = self.catalog.find(product_id)
        if product is None:
            raise ClientError("Product not found")
        return product

    # Cart

    def add_to_cart(self, product_id: int):
        return self.cart.add(self._product(product_id))

    def checkout(self) -> Order:
        user = self.session.current_user()
        if user is None or self.session.is_admin():
            raise ClientError("Log in as a customer to place an order")
        if not len(self.cart):
            raise ClientError("Your cart is empty")
        payload = {
            "userId": user.id,
            "items": self.cart.snapshot(),
            "total": self.cart.total(),
        }
        data = self._request("POST", "/api/orders", "Could not place the order", json=payload)
        self.cart.clear()
        return Order.model_validate(data)

    def my_orders(self) -> List[Order]:
        user = self.session.current_user()
        if user is None:
            raise ClientError("Log in to see your orders")
        data = self._request("GET", "/api/orders/user", "Could not load orders",
                             params={"userId": user.id})
        return [Order.model_validate(o) for o in data]

    # Favorites

    def toggle_favorite(self, product_id: int) -> int:
        """Flip a product in the favorites list and move its shared counter."""
        if not self.session.is_logged_in():
            raise ClientError("Log in to add favorites")
        product = self._product(product_id)
        change = -1 if self.favorites.contains(product_id) else 1
        self._request("POST", f"/api/products/{product_id}/favorite",
                      "Could not update favorites", json={"change": change})
        self.favorites.toggle(product)
        return change

    def remove_favorite(self, product_id: int) -> bool:
        """Drop a product from the favorites list, moving its counter down.

        Returns False when the product was not a favorite; nothing is sent.
        """
        if not self.favorites.contains(product_id):
            return False
        self._request("POST", f"/api/products/{product_id}/favorite",
                      "Could not update favorites", json={"change": -1})
        self.favorites.remove(product_id)
        return True

    # Reviews

    def submit_review(self, product_id: int, text: str, rating: int) -> Review:
        user = self.session.current_user()
        if user is None:
            raise ClientError("Log in to leave a review")
        data = self._request("POST", "/api/reviews", "Could not add the review", json={
            "userId": user.id,
            "userName": user.username,
            "productId": product_id,
            "text": text,
            "rating": rating,
        })
        return Review.model_validate(data)
