# catalog/store.py
import logging
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session
from .errors import Conflict, ExecutionFailure, InvalidSortOrder
from .models import Product

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "id": Product.id,
    "name": Product.name,
    "category": Product.category,
    "quantity": Product.quantity,
    "price": Product.price,
    "discount": Product.discount,
}


@dataclass(frozen=True)
class SortOrder:
    key: str
    descending: bool = False

    @classmethod
    def parse(cls, raw: str) -> "SortOrder":
        """Parse ``price``, ``price desc``, ``price ASC`` or ``-price``.

        Anything naming a column outside SORTABLE_COLUMNS, or carrying more
        than a direction, raises InvalidSortOrder.
        """
        parts = (raw or "").strip().split()
        if not parts or len(parts) > 2:
            raise InvalidSortOrder(f"Invalid sort order: {raw!r}")

        key, descending = parts[0].lower(), False
        if key.startswith("-") and len(parts) == 1:
            key, descending = key[1:], True
        if len(parts) == 2:
            direction = parts[1].lower()
            if direction not in ("asc", "desc"):
                raise InvalidSortOrder(f"Invalid sort direction: {parts[1]!r}")
            descending = direction == "desc"

        if key not in SORTABLE_COLUMNS:
            raise InvalidSortOrder(
                f"Cannot sort by {key!r}; allowed keys: {', '.join(sorted(SORTABLE_COLUMNS))}"
            )
        return cls(key, descending)

    def clause(self):
        column = SORTABLE_COLUMNS[self.key]
        return column.desc() if self.descending else column.asc()


class ProductStore:
    """Persistence for products on top of a request-scoped session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def all(self) -> List[Product]:
        result = await self.session.execute(select(Product))
        return list(result.scalars().all())

    async def by_category(self, category: Optional[str], sort: Optional[SortOrder] = None) -> List[Product]:
        stmt = select(Product)
        if category is not None:
            stmt = stmt.where(Product.category == category)
        if sort is not None:
            # id as a tie breaker keeps equal keys in a stable order
            stmt = stmt.order_by(sort.clause(), Product.id.asc())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            logger.exception("Filtering products by category %r failed", category)
            raise ExecutionFailure("Could not get filtered products") from exc
        return list(result.scalars().all())

    async def get(self, product_id: int) -> Optional[Product]:
        try:
            return await self.session.get(Product, product_id)
        except SQLAlchemyError:
            logger.warning("Lookup of product %s failed, treating as missing", product_id, exc_info=True)
            return None

    async def get_by_name(self, name: str) -> Optional[Product]:
        try:
            result = await self.session.execute(select(Product).where(Product.name == name))
            return result.scalars().first()
        except SQLAlchemyError:
            logger.warning("Lookup of product %r failed, treating as missing", name, exc_info=True)
            return None

    async def insert(self, **fields) -> Product:
        product = Product(**fields)
        self.session.add(product)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Insert of product %r hit the unique name constraint", fields.get("name"))
            raise Conflict() from exc
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.exception("Insert of product %r failed", fields.get("name"))
            raise ExecutionFailure("Could not create product", template="products/error_create_product.html") from exc
        await self.session.refresh(product)
        return product

    async def update(self, product_id: int, **fields) -> None:
        """Overwrite every given column of one row in a single statement."""
        try:
            await self.session.execute(
                update(Product)
                .where(Product.id == product_id)
                .values({getattr(Product, name): value for name, value in fields.items()})
            )
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            logger.info("Update of product %s hit the unique name constraint", product_id)
            raise Conflict() from exc

    async def delete(self, product_id: int) -> None:
        await self.session.execute(delete(Product).where(Product.id == product_id))
        await self.session.commit()


async def get_product_store(session: AsyncSession = Depends(get_session)) -> ProductStore:
    return ProductStore(session)
