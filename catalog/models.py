from sqlalchemy import Column, Integer, String, Text, Float, Index

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String, nullable=False)
    # 1 - ordinary user, 2 - administrator (see auth.UserStatus)
    user_status = Column("userStatus", Integer, nullable=False, default=1)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    # unique at the storage level so concurrent creates cannot both succeed
    name = Column(String(255), nullable=False, unique=True)
    category = Column(String(100), nullable=True)
    photo_url = Column("photoUrl", String(255), nullable=True)
    quantity = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("ix_products_category", "category"),
    )
