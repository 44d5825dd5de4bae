from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, field_validator

from maktaba.app.models.catalog import RequestedBookStatus
from maktaba.app.schemas.common import OrmOut


class CustomerCreate(BaseModel):
    name: str
    phone: str
    address: str | None = None
    email: str | None = None
    notes: str | None = None

    @field_validator("name", "phone")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name and phone must not be empty")
        return v.strip()


class CustomerUpdate(BaseModel):
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    email: str | None = None
    notes: str | None = None


class CustomerOut(OrmOut):
    id: UUID
    name: str
    phone: str
    address: str | None
    email: str | None
    notes: str | None


class RequestedBookCreate(BaseModel):
    name: str
    customer_name: str | None = None
    customer_phone: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Book name must not be empty")
        return v.strip()


class RequestedBookStatusUpdate(BaseModel):
    status: RequestedBookStatus


class RequestedBookOut(OrmOut):
    id: UUID
    name: str
    customer_name: str | None
    customer_phone: str | None
    requested_count: int
    last_requested_date: datetime
    status: RequestedBookStatus
