import pytest

from catalog.errors import InvalidSortOrder
from catalog.schemas import ProductCreate, ProductUpdate
from catalog.store import SortOrder


@pytest.mark.parametrize("raw, key, descending", [
    ("price", "price", False),
    ("  Price  ", "price", False),
    ("price asc", "price", False),
    ("price DESC", "price", True),
    ("-discount", "discount", True),
    ("id desc", "id", True),
])
def test_sort_order_parses_allowed_keys(raw, key, descending):
    assert SortOrder.parse(raw) == SortOrder(key, descending)


@pytest.mark.parametrize("raw", ["", "   ", "-", "photoUrl", "-price desc", "price desc nulls last", "1"])
def test_sort_order_rejects_everything_else(raw):
    with pytest.raises(InvalidSortOrder):
        SortOrder.parse(raw)


def test_update_changes_only_lists_sent_non_null_fields():
    payload = ProductUpdate.model_validate({"price": "12.5", "photoUrl": "/x.jpg", "description": None})
    assert payload.changes() == {"price": 12.5, "photo_url": "/x.jpg"}


def test_update_changes_keep_falsy_values():
    payload = ProductUpdate.model_validate({"discount": 0, "category": ""})
    assert payload.changes() == {"discount": 0.0, "category": ""}


def test_create_null_text_fields_become_empty():
    payload = ProductCreate.model_validate({"name": "Kettle", "description": None})
    assert payload.description == ""
    assert payload.model_dump()["photo_url"] == ""
