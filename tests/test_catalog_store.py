import json

import pytest

from routine_builder.catalog_store import CatalogStore
from routine_builder.errors import LoadError


def write(path, payload):
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return path


def test_load_keeps_file_order_and_caches(catalog_path):
    store = CatalogStore(catalog_path)
    products = store.load()
    assert [product.id for product in products] == [1, 2, 3]

    # A cached catalog no longer touches the file
    catalog_path.unlink()
    assert [product.id for product in store.load()] == [1, 2, 3]


def test_get_and_categories(catalog_path):
    store = CatalogStore(catalog_path)
    assert store.get(2).name == "Lash Paradise Mascara"
    assert store.get(99) is None
    assert store.categories() == ["haircare", "makeup", "skincare"]


def test_missing_file_raises_load_error(tmp_path):
    store = CatalogStore(tmp_path / "missing.json")
    with pytest.raises(LoadError):
        store.load()


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        {"items": []},
        {"products": {"id": 1}},
        {"products": [{"id": 1, "name": "No brand", "category": "skincare"}]},
        {"products": [{"id": "x", "name": "A", "brand": "B", "category": "C"}]},
    ],
)
def test_malformed_catalog_raises_load_error(tmp_path, payload):
    store = CatalogStore(write(tmp_path / "products.json", payload))
    with pytest.raises(LoadError):
        store.load()


def test_duplicate_ids_are_rejected(tmp_path):
    record = {"id": 1, "name": "A", "brand": "B", "category": "C"}
    store = CatalogStore(write(tmp_path / "products.json", {"products": [record, record]}))
    with pytest.raises(LoadError, match="repeats product id 1"):
        store.load()


def test_failed_load_is_retried(tmp_path, catalog_path):
    path = tmp_path / "later.json"
    store = CatalogStore(path)
    with pytest.raises(LoadError):
        store.load()
    path.write_text(catalog_path.read_text(encoding="utf-8"), encoding="utf-8")
    assert len(store.load()) == 3


def test_optional_fields_default_to_empty(tmp_path):
    store = CatalogStore(write(tmp_path / "products.json", {"products": [{"id": 7, "name": "A", "brand": "B", "category": "C"}]}))
    product = store.load()[0]
    assert product.image == ""
    assert product.description == ""
