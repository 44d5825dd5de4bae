from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from maktaba.app.api.deps import client_ip, get_current_user, oauth2_scheme
from maktaba.app.core.database import get_db
from maktaba.app.core.security import (
    cleanup_expired_tokens,
    create_access_token,
    revoke_token,
)
from maktaba.app.middleware.rate_limit import InMemoryRateLimiter
from maktaba.app.models.user import User
from maktaba.app.schemas.common import MessageOut
from maktaba.app.schemas.users import TokenOut, UserOut
from maktaba.app.services.errors import (
    AccountLockedError,
    InactiveUserError,
    InvalidCredentialsError,
)
from maktaba.app.services.users import login

router = APIRouter()

# Per-IP login throttle
login_limiter = InMemoryRateLimiter(window_seconds=60, max_attempts=10)


@router.post("/login/access-token", response_model=TokenOut)
def login_access_token(
    request: Request,
    db: Session = Depends(get_db),
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> dict[str, str]:
    """OAuth2 password flow for the till and back-office clients."""
    ip = client_ip(request) or "unknown"
    login_limiter.check(ip)

    try:
        user = login(db, form_data.username, form_data.password, ip)
    except AccountLockedError as e:
        raise HTTPException(status_code=status.HTTP_423_LOCKED, detail=str(e))
    except InactiveUserError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"access_token": create_access_token(subject=str(user.id)), "token_type": "bearer"}


@router.post("/logout", response_model=MessageOut)
def logout(token: str = Depends(oauth2_scheme)) -> dict[str, str]:
    revoke_token(token)
    cleanup_expired_tokens()
    return {"detail": "Logged out"}


@router.get("/me", response_model=UserOut)
def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user
