from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator

from maktaba.app.core.dates import as_utc


class OrmOut(BaseModel):
    """Response base: reads ORM rows and reports datetimes in UTC."""

    class Config:
        from_attributes = True

    @field_validator("*")
    @classmethod
    def datetimes_in_utc(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return as_utc(v)
        return v


class MessageOut(BaseModel):
    detail: str
