import pytest

from catalog import CatalogFilter, view_record
from errors import Malformed, NotFound
from schemas import CategoryCreate, ProductCreate, ProductPatch


def test_list_products_joins_category_and_prices(catalog):
    views = catalog.list_products()
    assert [v.name for v in views] == ["Phone", "Novel", "Case"]
    phone = views[0]
    assert phone.category.name == "Phones"
    assert phone.final_price == 75
    assert views[1].final_price == 20


def test_list_products_by_category(catalog):
    assert [v.name for v in catalog.list_products(1)] == ["Phone", "Case"]
    assert [v.name for v in catalog.list_products(2)] == ["Novel"]
    assert catalog.list_products(99) == []


def test_dangling_category_is_tolerated(catalog):
    catalog.create_product(ProductCreate(name="Orphan", price=5, category_id=42))
    view = catalog.list_products()[-1]
    assert view.category is None
    assert "category" not in view_record(view)
    assert "category" in view_record(catalog.list_products()[0])


def test_delete_category_cascades(catalog):
    removed = catalog.delete_category(1)
    assert removed == 2
    assert [v.name for v in catalog.list_products(None)] == ["Novel"]
    assert [c.name for c in catalog.categories()] == ["Books"]


def test_delete_missing_category(catalog):
    with pytest.raises(NotFound):
        catalog.delete_category(99)
    assert len(catalog.products()) == 3


def test_ids_not_reused_after_delete(catalog):
    catalog.delete_product(3)
    product = catalog.create_product(ProductCreate(name="Charger", price=15, category_id=1))
    assert product.id == 4

    catalog.delete_category(2)
    assert catalog.create_category(CategoryCreate(name="Games")).id == 3


def test_update_product_typed_patch(catalog):
    updated = catalog.update_product(2, ProductPatch(discount=50))
    assert updated.discount == 50
    assert updated.price == 20
    assert updated.name == "Novel"
    assert catalog.list_products(2)[0].final_price == 10


def test_update_keeps_stats(catalog):
    products = catalog.store.read("products")
    products[0]["stats"]["purchased"] = 7
    catalog.store.write("products", products)

    catalog.update_product(1, ProductPatch(name="Phone X"))
    assert catalog.get_product(1).stats.purchased == 7


def test_update_missing_product(catalog):
    with pytest.raises(NotFound):
        catalog.update_product(99, ProductPatch(price=5))


def test_update_rejects_invalid_merge(catalog):
    patch = ProductPatch.model_validate({"price": None})
    with pytest.raises(Malformed):
        catalog.update_product(1, patch)
    assert catalog.get_product(1).price == 100


def test_delete_product(catalog):
    catalog.delete_product(2)
    assert [p.id for p in catalog.products()] == [1, 3]
    with pytest.raises(NotFound):
        catalog.delete_product(2)


def test_filter_select_all_resets_selection(catalog):
    view = CatalogFilter(catalog.products(), catalog.categories())
    assert [v.name for v in view.select(2)] == ["Novel"]
    assert view.selected_category == 2

    everything = view.select(None)
    assert view.selected_category is None
    assert [v.name for v in everything] == ["Phone", "Novel", "Case"]
    assert [v.name for v in view.select(None)] == ["Phone", "Novel", "Case"]


def test_filter_find(catalog):
    view = CatalogFilter()
    view.load(catalog.products(), catalog.categories())
    assert view.find(3).name == "Case"
    assert view.find(9) is None
