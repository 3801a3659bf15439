"""
Schemas

Pydantic models for the records the API reads and writes. Python attributes
are snake_case; the JSON wire format is camelCase (customerName, imageUrl,
productId, createdAt), matching what the storefront client sends.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# Largest value every supported backend stores in an INTEGER column.
MAX_INT = 2**31 - 1


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Product(WireModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    image_url: Optional[str] = Field(None, alias="imageUrl")
    size: Optional[str] = Field(None, description="Comma separated sizes, e.g. S,M,L")
    category: Optional[str] = None


class User(WireModel):
    id: int
    name: str
    email: str


class UserRecord(User):
    password_hash: str = Field(..., description="BCrypt hashed password")


class OrderItemView(WireModel):
    product_name: str = Field(..., alias="productName")
    price: float
    quantity: int


class OrderWithItems(WireModel):
    id: int
    customer_name: str = Field(..., alias="customerName")
    email: str
    address: str
    created_at: datetime = Field(..., alias="createdAt")
    items: List[OrderItemView] = Field(default_factory=list)


# Request payloads

class RegisterInput(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginInput(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class CartItem(WireModel):
    product_id: StrictInt = Field(..., alias="productId", ge=1, le=MAX_INT)
    quantity: StrictInt = Field(..., ge=1, le=MAX_INT)


class OrderInput(WireModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    customer_name: str = Field(..., alias="customerName", min_length=1)
    # Accepted for client compatibility; the stored email is always the caller's.
    email: Optional[str] = None
    address: str = Field(..., min_length=1)
    items: List[CartItem] = Field(..., min_length=1)


class AuthResponse(BaseModel):
    token: str
    user: User


class OrderCreated(WireModel):
    success: bool = True
    order_id: int = Field(..., alias="orderId")
