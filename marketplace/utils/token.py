from jose import jwt, JWTError
from datetime import timedelta
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from marketplace.config import Settings
from marketplace.database import get_session
from marketplace.errors import Forbidden, Unauthenticated
from marketplace.models.user import User
from marketplace.utils.clock import utcnow

# Tokens are issued by the accounts service; this API only validates them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
):
    to_encode = data.copy()

    expire = utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def decode_access_token(token: str, settings: Settings):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    bearer = {"WWW-Authenticate": "Bearer"}

    if not token:
        raise Unauthenticated("Not authenticated", headers=bearer)

    payload = decode_access_token(token, request.app.state.settings)

    if payload is None:
        raise Unauthenticated("Could not validate credentials", headers=bearer)

    user_id = payload.get("user_id") or payload.get("sub")

    if user_id is None:
        raise Unauthenticated("Invalid token payload", headers=bearer)

    try:
        user = session.get(User, int(user_id))
    except (TypeError, ValueError):
        user = None

    if user is None:
        raise Unauthenticated("User not found", headers=bearer)

    if not user.can_login:
        raise Forbidden("User account is disabled")

    return user
