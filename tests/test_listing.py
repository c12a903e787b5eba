"""Listing and filtering are open to every caller."""

import pytest
from sqlalchemy import text


def test_list_all_empty_catalog(client):
    r = client.get("/api/products")
    assert r.status_code == 200
    assert r.json() == {"products": []}


def test_list_all_returns_every_product(client, catalog_db):
    ids = [
        catalog_db.add_product("Kettle"),
        catalog_db.add_product("Yoga Mat", category="sport"),
        catalog_db.add_product("Desk Lamp", category="home"),
    ]
    r = client.get("/api/products")
    assert r.status_code == 200
    products = r.json()["products"]
    assert sorted(p["id"] for p in products) == sorted(ids)
    lamp = next(p for p in products if p["name"] == "Desk Lamp")
    assert lamp["photoUrl"] == "/img/desk-lamp.jpg"
    assert set(lamp) == {"id", "name", "category", "photoUrl", "quantity", "description", "price", "discount"}


@pytest.mark.parametrize("params", [{}, {"category": ""}, {"category": "", "order": ""}])
def test_filter_without_category_or_order_is_not_found(client, catalog_db, params):
    catalog_db.add_product("Kettle")
    r = client.get("/api/products/filter", params=params)
    assert r.status_code == 404
    assert r.json() == {"message": "Product not found"}


def test_filter_by_category_returns_only_matching_rows(client, catalog_db):
    kettle = catalog_db.add_product("Kettle", category="kitchen")
    catalog_db.add_product("Yoga Mat", category="sport")
    pan = catalog_db.add_product("Pan", category="kitchen")
    catalog_db.add_product("Kitchen Poster", category="Kitchen")

    r = client.get("/api/products/filter", params={"category": "kitchen"})
    assert r.status_code == 200
    products = r.json()["products"]
    assert [p["id"] for p in products] == [kettle, pan]
    assert all(p["category"] == "kitchen" for p in products)


def test_filter_unknown_category_is_empty_not_missing(client, catalog_db):
    catalog_db.add_product("Kettle")
    r = client.get("/api/products/filter", params={"category": "garden"})
    assert r.status_code == 200
    assert r.json() == {"products": []}


@pytest.mark.parametrize("order, expected", [
    ("price", ["Pan", "Kettle", "Blender"]),
    ("price asc", ["Pan", "Kettle", "Blender"]),
    ("price DESC", ["Blender", "Kettle", "Pan"]),
    ("-price", ["Blender", "Kettle", "Pan"]),
    ("name", ["Blender", "Kettle", "Pan"]),
])
def test_filter_sorts_within_category(client, catalog_db, order, expected):
    catalog_db.add_product("Kettle", price=30.0)
    catalog_db.add_product("Blender", price=80.0)
    catalog_db.add_product("Pan", price=15.0)
    catalog_db.add_product("Treadmill", category="sport", price=999.0)

    r = client.get("/api/products/filter", params={"category": "kitchen", "order": order})
    assert r.status_code == 200
    assert [p["name"] for p in r.json()["products"]] == expected


def test_filter_with_order_only_sorts_whole_catalog(client, catalog_db):
    catalog_db.add_product("Kettle", price=30.0)
    catalog_db.add_product("Treadmill", category="sport", price=999.0)
    catalog_db.add_product("Pan", price=15.0)

    r = client.get("/api/products/filter", params={"order": "price desc"})
    assert r.status_code == 200
    assert [p["name"] for p in r.json()["products"]] == ["Treadmill", "Kettle", "Pan"]


@pytest.mark.parametrize("order", [
    "price; DROP TABLE products",
    "(SELECT 1)",
    "password_hash",
    "price sideways",
    "price desc, name",
    "name asc extra",
])
def test_filter_rejects_orders_outside_allowed_keys(client, catalog_db, order):
    catalog_db.add_product("Kettle")
    r = client.get("/api/products/filter", params={"category": "kitchen", "order": order})
    assert r.status_code == 400
    assert "message" in r.json()
    assert catalog_db.count() == 1


def test_filter_execution_failure_is_server_error(client, catalog_db):
    with catalog_db.engine.begin() as conn:
        conn.execute(text("DROP TABLE products"))

    r = client.get("/api/products/filter", params={"category": "kitchen"})
    assert r.status_code == 500
    assert r.json() == {"message": "Could not get filtered products"}


def test_browsers_get_the_rendered_template(client, catalog_db):
    catalog_db.add_product("Kettle", price=30.0)
    r = client.get("/api/products", headers={"Accept": "text/html"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Kettle" in r.text
    assert "30.00" in r.text


def test_rendered_errors_keep_their_status(client):
    r = client.get("/api/products/filter", headers={"Accept": "text/html"})
    assert r.status_code == 404
    assert "Product not found" in r.text
