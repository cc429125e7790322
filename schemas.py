"""
Database Schemas for the ARO Bazzar store

Each Pydantic model maps to a MongoDB collection (lowercased entity name).
Field names are camelCase on the wire and in the stored documents.

Collections:
- user
- product
- category
- order
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

Role = Literal["Admin", "Editor"]
ProductStatus = Literal["Active", "Archived", "Out of Stock"]
OrderStatus = Literal["Processing", "Shipped", "Delivered", "Cancelled"]

ModelT = TypeVar("ModelT", bound=BaseModel)

email_adapter = TypeAdapter(EmailStr)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class User(StoreModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address, unique")
    password: str = Field(..., min_length=1, description="Plaintext on input, bcrypt hash once stored")
    role: Role = Field("Editor", description="Admin | Editor")


class UserUpdate(StoreModel):
    # password is not updatable here; unknown keys are dropped
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None


class Product(StoreModel):
    """
    Products collection schema
    Collection name: "product"
    """
    name: str = Field(..., description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    category: str = Field(..., description="Category name")
    stock: int = Field(0, ge=0, description="Units in stock")
    status: ProductStatus = Field("Active", description="Active | Archived | Out of Stock")
    images: List[str] = Field(default_factory=list, description="Image URLs, in display order")
    created_at: datetime = Field(default_factory=utcnow)


class ProductUpdate(StoreModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None
    images: Optional[List[str]] = None


class Category(StoreModel):
    """
    Categories collection schema
    Collection name: "category"
    """
    name: str = Field(..., min_length=1, description="Category name, unique")


class CategoryUpdate(StoreModel):
    name: Optional[str] = Field(None, min_length=1)


class OrderItem(StoreModel):
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    price: Optional[float] = None


class Order(StoreModel):
    """
    Orders collection schema
    Collection name: "order"

    total is taken as supplied by the client and is not recomputed from items.
    """
    customer: str = Field(..., description="Customer name")
    items: List[OrderItem] = Field(default_factory=list)
    total: float = Field(..., description="Order total")
    status: OrderStatus = Field("Processing", description="Processing | Shipped | Delivered | Cancelled")
    order_date: datetime = Field(default_factory=utcnow)


class OrderUpdate(StoreModel):
    customer: Optional[str] = None
    items: Optional[List[OrderItem]] = None
    total: Optional[float] = None
    status: Optional[OrderStatus] = None


class LoginRequest(BaseModel):
    email: str
    password: str


def normalize_email(value: str) -> Optional[str]:
    """The address as EmailStr stores it, or None if it is not an email."""
    try:
        return email_adapter.validate_python(value)
    except ValidationError:
        return None


def validate(model: Type[ModelT], record: Dict[str, Any]) -> ModelT:
    """Validate a wire record against an entity schema.

    Raises pydantic's ValidationError when a required field is missing or a
    constraint (enum, range, email format) fails.
    """
    return model.model_validate(record)


def changes_from(update: StoreModel) -> Dict[str, Any]:
    """Only the fields the caller actually supplied, by stored name."""
    return {k: v for k, v in update.model_dump(by_alias=True, exclude_unset=True).items() if v is not None}


def format_errors(title: str, errors: List[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc)
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return f"{title} validation failed: " + ", ".join(parts)


def format_validation_error(exc: ValidationError) -> str:
    return format_errors(exc.title, exc.errors())
