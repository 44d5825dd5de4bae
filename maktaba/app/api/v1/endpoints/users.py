from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from maktaba.app.api.deps import get_current_active_admin, get_current_user, http_error
from maktaba.app.core.database import get_db
from maktaba.app.core.security import validate_password_strength
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.users import UserCreate, UserOut, UserUpdate
from maktaba.app.services.users import (
    change_own_password,
    create_user,
    delete_user,
    list_users,
    update_user,
)

router = APIRouter()


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def check_password_strength(cls, v: str) -> str:
        error = validate_password_strength(v)
        if error:
            raise ValueError(error)
        return v


@router.get("", response_model=list[UserOut])
def list_all_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> list[User]:
    return list_users(db)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_new_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> User:
    """Create a user account. Cashiers get a till account too."""
    try:
        user = create_user(
            db,
            username=body.username,
            password=body.password,
            role=body.role,
            admin_id=current_user.id,
        )
        db.commit()
        return user
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.patch("/{user_id}", response_model=UserOut)
def update_existing_user(
    user_id: UUID,
    body: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> User:
    try:
        user = update_user(
            db,
            user_id=user_id,
            admin_id=current_user.id,
            username=body.username,
            role=body.role,
            is_active=body.is_active,
            password=body.password,
        )
        db.commit()
        return user
    except ValueError as e:
        raise http_error(e)


@router.delete("/{user_id}", response_model=MessageOut)
def delete_existing_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_admin),
) -> dict[str, str]:
    try:
        delete_user(db, user_id=user_id, admin_id=current_user.id)
        db.commit()
        return {"detail": "User deleted"}
    except ValueError as e:
        raise http_error(e)


@router.post("/change-password", response_model=MessageOut)
def change_my_password(
    body: ChangePasswordIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    try:
        change_own_password(
            db,
            user_id=current_user.id,
            current_password=body.current_password,
            new_password=body.new_password,
        )
        db.commit()
        return {"detail": "Password changed successfully"}
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
