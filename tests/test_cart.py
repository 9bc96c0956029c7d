import json

from cart import CART_KEY, CartStore, JsonFileStorage, MemoryStorage
from schemas import Product


def make_product(pid=1, price=100, discount=0, name="Phone"):
    return Product(id=pid, name=name, price=price, discount=discount, image="/img.jpg")


def test_adding_same_product_twice_increments_quantity():
    cart = CartStore(MemoryStorage())
    product = make_product()
    cart.add(product)
    cart.add(product)
    assert len(cart) == 1
    assert cart.items[0].quantity == 2


def test_price_captured_at_add_time_with_discount():
    cart = CartStore(MemoryStorage())
    cart.add(make_product(price=100, discount=25))
    assert cart.items[0].price == 75

    # a later discount change does not refresh the snapshot
    cart.add(make_product(price=100, discount=50))
    assert cart.items[0].price == 75
    assert cart.total() == 150


def test_change_quantity_to_zero_removes_line():
    cart = CartStore(MemoryStorage())
    cart.add(make_product())
    cart.add(make_product())
    cart.change_quantity(1, -2)
    assert cart.find(1) is None
    assert len(cart) == 0


def test_change_quantity_up_and_down():
    cart = CartStore(MemoryStorage())
    cart.add(make_product())
    cart.change_quantity(1, 3)
    assert cart.find(1).quantity == 4
    cart.change_quantity(1, -1)
    assert cart.find(1).quantity == 3
    cart.change_quantity(42, 1)  # unknown id is ignored
    assert cart.count() == 3


def test_remove_and_clear():
    cart = CartStore(MemoryStorage())
    cart.add(make_product(pid=1))
    cart.add(make_product(pid=2, name="Case", price=10))
    cart.remove(1)
    assert [i.product_id for i in cart.items] == [2]
    cart.clear()
    assert cart.items == []
    assert cart.total() == 0


def test_cart_written_after_every_mutation():
    storage = MemoryStorage()
    cart = CartStore(storage)
    cart.add(make_product())
    saved = json.loads(storage.get_item(CART_KEY))
    assert saved == [{
        "productId": 1, "name": "Phone", "price": 100, "quantity": 1, "image": "/img.jpg",
    }]

    reloaded = CartStore(storage)
    assert reloaded.items[0].product_id == 1
    assert reloaded.total() == 100


def test_unreadable_storage_starts_empty():
    storage = MemoryStorage({CART_KEY: "not json"})
    assert CartStore(storage).items == []

    storage = MemoryStorage({CART_KEY: json.dumps([{"productId": 1}, {"bogus": True}])})
    assert CartStore(storage).items == []


def test_json_file_storage_survives_restart(tmp_path):
    path = str(tmp_path / "local.json")
    cart = CartStore(JsonFileStorage(path))
    cart.add(make_product())
    cart.add(make_product())

    restored = CartStore(JsonFileStorage(path))
    assert restored.items[0].quantity == 2
