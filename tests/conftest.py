import os

# catalog.database builds its engine at import time; keep it off Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from catalog.auth import UserStatus, create_access_token
from catalog.database import Base, get_session
from catalog.main import app
from catalog.models import Product, User


class CatalogDB:
    """Synchronous access to the test database for arranging and asserting."""

    def __init__(self, engine):
        self.engine = engine
        self._users = 0

    def add_user(self, user_status=UserStatus.USER) -> int:
        self._users += 1
        with Session(self.engine) as session:
            user = User(
                email=f"user{self._users}@example.com",
                full_name=f"User {self._users}",
                password_hash="not-a-real-hash",
                user_status=int(user_status),
            )
            session.add(user)
            session.commit()
            return user.id

    def add_product(self, name, **fields) -> int:
        values = {
            "category": "kitchen",
            "photo_url": f"/img/{name.lower().replace(' ', '-')}.jpg",
            "quantity": 10.0,
            "description": f"{name} description",
            "price": 9.99,
            "discount": 0.0,
        }
        values.update(fields)
        with Session(self.engine) as session:
            product = Product(name=name, **values)
            session.add(product)
            session.commit()
            return product.id

    def product(self, product_id):
        with Session(self.engine) as session:
            product = session.get(Product, product_id)
            if product is None:
                return None
            return {
                "id": product.id,
                "name": product.name,
                "category": product.category,
                "photoUrl": product.photo_url,
                "quantity": product.quantity,
                "description": product.description,
                "price": product.price,
                "discount": product.discount,
            }

    def count(self) -> int:
        with Session(self.engine) as session:
            return session.execute(select(func.count()).select_from(Product)).scalar_one()


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "catalog.db"


@pytest.fixture
def catalog_db(db_file):
    engine = create_engine(f"sqlite:///{db_file}")
    Base.metadata.create_all(engine)
    yield CatalogDB(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_file, catalog_db):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)
    return sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user_id) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'userId': user_id})}"}


@pytest.fixture
def admin_headers(catalog_db):
    return bearer(catalog_db.add_user(UserStatus.ADMINISTRATOR))


@pytest.fixture
def user_headers(catalog_db):
    return bearer(catalog_db.add_user(UserStatus.USER))
