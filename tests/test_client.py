import httpx
import pytest

from cart import MemoryStorage
from client import ClientError, StorefrontClient


@pytest.fixture
def shop(api):
    client = StorefrontClient(http=api, storage=MemoryStorage())
    client.load_catalog()
    return client


def test_load_catalog_and_select(shop):
    assert [v.name for v in shop.select_category(2)] == ["T-shirt"]
    assert [v.name for v in shop.select_category(None)] == ["Smartphone", "T-shirt"]
    assert shop.catalog.selected_category is None


def test_guest_cannot_check_out(shop):
    shop.add_to_cart(2)
    with pytest.raises(ClientError):
        shop.checkout()
    assert shop.cart.count() == 1


def test_admin_cannot_check_out(shop):
    shop.login("admin", "admin123")
    shop.add_to_cart(2)
    with pytest.raises(ClientError):
        shop.checkout()
    assert shop.cart.count() == 1


def test_empty_cart_cannot_check_out(shop):
    shop.register("alice", "pw123")
    with pytest.raises(ClientError, match="empty"):
        shop.checkout()


def test_checkout_clears_cart_and_records_order(shop, api):
    shop.register("alice", "pw123")
    shop.add_to_cart(2)
    shop.add_to_cart(2)
    shop.add_to_cart(1)

    order = shop.checkout()
    assert order.total == 160000
    assert [(i.product_id, i.quantity) for i in order.items] == [(2, 2), (1, 1)]
    assert len(shop.cart) == 0
    assert [o.id for o in shop.my_orders()] == [order.id]

    tshirt = api.get("/api/products/2").json()
    assert tshirt["stats"]["purchased"] == 2


def test_discount_snapshot_used_at_checkout(shop, api):
    api.put("/api/products/1", json={"discount": 10})
    shop.load_catalog()
    shop.register("alice", "pw123")
    shop.add_to_cart(1)

    assert shop.cart.items[0].price == 135000
    assert shop.checkout().total == 135000


def test_favorite_toggle_round_trip(shop, api):
    with pytest.raises(ClientError):
        shop.toggle_favorite(1)

    shop.register("alice", "pw123")
    assert shop.toggle_favorite(1) == 1
    assert api.get("/api/products/1").json()["stats"]["favorited"] == 1
    assert shop.toggle_favorite(1) == -1
    assert api.get("/api/products/1").json()["stats"]["favorited"] == 0
    assert shop.favorites.ids() == []


def test_remove_favorite_moves_counter_down(shop, api):
    shop.register("alice", "pw123")
    shop.toggle_favorite(1)
    shop.toggle_favorite(2)

    assert shop.remove_favorite(1) is True
    assert shop.favorites.ids() == [2]
    assert api.get("/api/products/1").json()["stats"]["favorited"] == 0

    assert shop.remove_favorite(1) is False
    assert api.get("/api/products/1").json()["stats"]["favorited"] == 0
    assert shop.favorites.ids() == [2]


def test_unknown_product_is_a_client_error(shop):
    with pytest.raises(ClientError, match="Product not found"):
        shop.add_to_cart(999)
    assert len(shop.cart) == 0

    shop.register("alice", "pw123")
    with pytest.raises(ClientError, match="Product not found"):
        shop.toggle_favorite(999)


def test_submit_review(shop):
    shop.register("alice", "pw123")
    review = shop.submit_review(1, "Great", 5)
    assert review.user_name == "alice"
    assert review.admin_reply is None


def test_failed_login_is_generic(shop):
    with pytest.raises(ClientError) as exc:
        shop.login("admin", "wrong")
    assert exc.value.message == "Invalid credentials"
    assert shop.session.current_user() is None


def offline(request):
    raise httpx.ConnectError("connection refused", request=request)


def test_network_failure_leaves_local_state(shop):
    shop.register("alice", "pw123")
    shop.add_to_cart(1)
    online = shop.http
    shop.http = httpx.Client(base_url="http://shop.test", transport=httpx.MockTransport(offline))

    with pytest.raises(ClientError, match="Network error"):
        shop.checkout()
    assert shop.cart.count() == 1

    with pytest.raises(ClientError):
        shop.toggle_favorite(1)
    assert shop.favorites.ids() == []

    shop.http = online
    shop.toggle_favorite(1)
    shop.http = httpx.Client(base_url="http://shop.test", transport=httpx.MockTransport(offline))
    with pytest.raises(ClientError):
        shop.remove_favorite(1)
    assert shop.favorites.ids() == [1]


def test_server_error_leaves_cart(shop):
    shop.register("alice", "pw123")
    shop.add_to_cart(1)
    shop.http = httpx.Client(
        base_url="http://shop.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, json={"message": "boom"})),
    )
    with pytest.raises(ClientError, match="Could not place the order"):
        shop.checkout()
    assert shop.cart.count() == 1
