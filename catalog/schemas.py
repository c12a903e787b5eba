# catalog/schemas.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional


# 👤 Users
class UserBase(BaseModel):
    email: EmailStr
    full_name: str

class UserCreate(UserBase):
    password: str

class UserOut(UserBase):
    id: int
    user_status: int
    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# 🛍️ Products
PRODUCT_FIELDS = ("name", "category", "photo_url", "quantity", "description", "price", "discount")


class ProductOut(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, serialization_alias="photoUrl")
    quantity: float
    description: Optional[str] = None
    price: float
    discount: float
    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    """Create payload.

    ``name`` is required. Text fields default to an empty string and the
    numeric fields to ``0.0`` when absent; a numeric field that is present
    must parse as a finite float.
    """
    name: str = Field(min_length=1)
    category: str = ""
    photo_url: str = Field(default="", alias="photoUrl")
    quantity: float = 0.0
    description: str = ""
    price: float = 0.0
    discount: float = 0.0
    class Config:
        populate_by_name = True
        allow_inf_nan = False

    @field_validator("category", "photo_url", "description", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value


class ProductUpdate(BaseModel):
    """Partial update payload: only fields sent with a non-null value are applied."""
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, alias="photoUrl")
    quantity: Optional[float] = None
    description: Optional[str] = None
    price: Optional[float] = None
    discount: Optional[float] = None
    class Config:
        populate_by_name = True
        allow_inf_nan = False

    def changes(self) -> dict:
        return {
            field: getattr(self, field)
            for field in PRODUCT_FIELDS
            if field in self.model_fields_set and getattr(self, field) is not None
        }
