from __future__ import annotations

from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.schemas.common import OrmOut


class ProductCreate(BaseModel):
    name: str
    author: str | None = None
    category: str | None = None
    quantity: int = 0
    price: Decimal
    cost_price: Decimal | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Product name must not be empty")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def quantity_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Quantity must be non-negative")
        return v

    @field_validator("price", "cost_price")
    @classmethod
    def price_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Price must be non-negative")
        return v


class ProductUpdate(BaseModel):
    name: str | None = None
    author: str | None = None
    category: str | None = None
    quantity: int | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None

    @field_validator("quantity")
    @classmethod
    def quantity_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("Quantity must be non-negative")
        return v

    @field_validator("price", "cost_price")
    @classmethod
    def price_non_negative(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v < 0:
            raise ValueError("Price must be non-negative")
        return v


class PriceOperation(str, Enum):
    MULTIPLY = "multiply"
    DIVIDE = "divide"


class PriceBatchRequest(BaseModel):
    operation: PriceOperation
    factor: Decimal
    product_ids: list[UUID] | None = None

    @field_validator("factor")
    @classmethod
    def factor_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Factor must be greater than zero")
        return v


class ProductOut(OrmOut):
    id: UUID
    name: str
    author: str | None
    category: str | None
    quantity: int
    price: Decimal
    cost_price: Decimal | None
