"""Seed the Postgres database with demo users and products.

This script is idempotent: it creates the `users` and `products` tables if
they do not exist (same schema as the alembic migration), then upserts an
administrator, an ordinary user and a small demo catalog.

Usage:
    python scripts/db_seed.py

The script reads DATABASE_URL from the environment; default matches docker-compose.
"""
import logging
import os
import sys
from pathlib import Path

import psycopg2
from psycopg2.extras import execute_values

# Ensure project root is on sys.path so the catalog package imports from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalog.auth import UserStatus, get_password_hash

logger = logging.getLogger("db_seed")

DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    "postgresql://postgres:postgres@db:5432/catalog_db",
).replace("+asyncpg", "")

DEMO_PASSWORD = os.environ.get("SEED_PASSWORD", "password123")

DEMO_PRODUCTS = [
    # name, category, photoUrl, quantity, description, price, discount
    ("Espresso Machine", "kitchen", "/static/img/espresso.jpg", 12, "15 bar pump espresso machine with steam wand.", 249.0, 0),
    ("Chef's Knife 8\"", "kitchen", "/static/img/knife.jpg", 40, "Forged stainless steel chef's knife.", 59.9, 10),
    ("Cast Iron Skillet", "kitchen", "/static/img/skillet.jpg", 25, "Pre-seasoned 12 inch skillet.", 34.5, 0),
    ("Trail Running Shoes", "sport", "/static/img/shoes.jpg", 18, "Lightweight shoes with a grippy outsole.", 119.0, 15),
    ("Yoga Mat", "sport", "/static/img/yoga.jpg", 60, "6 mm non-slip mat.", 24.99, 0),
    ("Desk Lamp", "home", "/static/img/lamp.jpg", 33, "Dimmable LED desk lamp.", 39.0, 5),
]


def connect_db(dsn: str):
    conn = psycopg2.connect(dsn)
    conn.autocommit = True
    return conn


def ensure_tables(conn):
    with conn.cursor() as cur:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id SERIAL PRIMARY KEY,
                email VARCHAR(255) UNIQUE NOT NULL,
                full_name VARCHAR(255) NOT NULL,
                password_hash VARCHAR NOT NULL,
                "userStatus" INTEGER NOT NULL DEFAULT 1
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS products (
                id SERIAL PRIMARY KEY,
                name VARCHAR(255) NOT NULL,
                category VARCHAR(100),
                "photoUrl" VARCHAR(255),
                quantity DOUBLE PRECISION NOT NULL DEFAULT 0,
                description TEXT,
                price DOUBLE PRECISION NOT NULL DEFAULT 0,
                discount DOUBLE PRECISION NOT NULL DEFAULT 0,
                CONSTRAINT uq_products_name UNIQUE (name)
            );
            """
        )


def seed_users(conn):
    demo_users = [
        ("admin@example.com", "Catalog Admin", get_password_hash(DEMO_PASSWORD), int(UserStatus.ADMINISTRATOR)),
        ("user@example.com", "Demo User", get_password_hash(DEMO_PASSWORD), int(UserStatus.USER)),
    ]
    sql = (
        'INSERT INTO users (email, full_name, password_hash, "userStatus") VALUES %s '
        'ON CONFLICT (email) DO UPDATE SET "userStatus" = EXCLUDED."userStatus"'
    )
    with conn.cursor() as cur:
        execute_values(cur, sql, demo_users)
    logger.info("Seeded %d users", len(demo_users))


def seed_products(conn):
    sql = (
        'INSERT INTO products (name, category, "photoUrl", quantity, description, price, discount) VALUES %s '
        'ON CONFLICT (name) DO UPDATE SET category = EXCLUDED.category, "photoUrl" = EXCLUDED."photoUrl", '
        'quantity = EXCLUDED.quantity, description = EXCLUDED.description, '
        'price = EXCLUDED.price, discount = EXCLUDED.discount'
    )
    with conn.cursor() as cur:
        execute_values(cur, sql, DEMO_PRODUCTS)
        cur.execute("SELECT id, name, category FROM products ORDER BY id")
        for row in cur.fetchall():
            logger.debug("product row: %s", row)
    logger.info("Seeded %d demo products", len(DEMO_PRODUCTS))


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), format="%(levelname)s %(name)s: %(message)s")
    logger.info("DB seed starting")
    try:
        conn = connect_db(DATABASE_URL)
    except psycopg2.Error:
        logger.exception("Failed to connect to database")
        sys.exit(1)

    try:
        ensure_tables(conn)
        seed_users(conn)
        seed_products(conn)
    finally:
        conn.close()
    logger.info("DB seed complete")


if __name__ == "__main__":
    main()
