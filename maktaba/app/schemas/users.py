from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from maktaba.app.core.security import validate_password_strength
from maktaba.app.models.user import RoleEnum
from maktaba.app.schemas.common import OrmOut


def _validate_pw(v: str) -> str:
    error = validate_password_strength(v)
    if error:
        raise ValueError(error)
    return v


class UserOut(OrmOut):
    id: UUID
    username: str
    role: RoleEnum
    is_active: bool


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=150)
    password: str = Field(..., min_length=8, max_length=128)
    role: RoleEnum = RoleEnum.CASHIER

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        return _validate_pw(v)


class UserUpdate(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=150)
    role: RoleEnum | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _validate_pw(v)


class TokenOut(BaseModel):
    access_token: str
    token_type: str
