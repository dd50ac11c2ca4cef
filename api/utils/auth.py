import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Cookie, Response, status, Depends
from fastapi import WebSocket
from sqlalchemy.orm import Session

from api.config import get_db, settings
from api.models.models import User as DbUser
from api.schemas.auth_schemas import AuthTokenPayload
from api.schemas.user_schemas import User
from api.utils.jwt import verify_token, get_password_hash, create_access_token, verify_password
from api.utils.logger import set_user_id

logger = logging.getLogger(__name__)


def _token_from_ws_scope(scope: dict) -> Optional[str]:
    """Extract access_token from Cookie or query (?token=) in WebSocket scope. Returns None if missing."""
    qs = scope.get("query_string") or b""
    if qs:
        for part in qs.split(b"&"):
            if part.startswith(b"token="):
                return part[6:].decode("utf-8", errors="replace").strip()
    for name, value in scope.get("headers") or []:
        if name.lower() == b"cookie":
            cookie = value.decode("utf-8", errors="replace")
            for part in cookie.split(";"):
                part = part.strip()
                if part.startswith("access_token="):
                    return part[13:].strip()
            break
    return None


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    if not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    payload = verify_token(access_token)
    user = get_user_by_email(payload.sub, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if user.is_blocked:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is blocked")
    set_user_id(user.id)
    return User.model_validate(user)


def require_student(current_user: User = Depends(get_current_user)) -> User:
    """Progress routes act on the caller's own progress; admins have none."""
    if current_user.role != "STUDENT":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student account required")
    return current_user


def set_auth_cookie(response: Response, user: DbUser) -> None:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    token = create_access_token(
        AuthTokenPayload(sub=user.email, role=user.role, exp=datetime.now(timezone.utc) + timedelta(minutes=minutes))
    )
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=minutes * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=False,
        samesite="lax"
    )


def get_user_from_websocket(websocket: WebSocket, db: Session) -> Optional[User]:
    """Authenticated, non-blocked user from a WebSocket (cookie or ?token=). None otherwise."""
    token = _token_from_ws_scope(websocket.scope)
    if not token:
        return None
    try:
        payload = verify_token(token)
    except HTTPException:
        return None
    user = get_user_by_email(payload.sub, db)
    if user is None or user.is_blocked:
        return None
    return User.model_validate(user)


def get_user_by_email(email: str, db: Session) -> Optional[DbUser]:
    return db.query(DbUser).filter(DbUser.email == email.strip().lower()).first()


def create_user(email: str, password: str, db: Session, name: Optional[str] = None) -> DbUser:
    email = email.strip().lower()
    user = DbUser(
        email=email,
        hashed_password=get_password_hash(password),
        name=(name or "").strip() or None,
        role="STUDENT",
        points=0,
        streak=0,
        is_blocked=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user created id=%s", user.id)
    return user


def authenticate_user(email: str, password: str, db: Session) -> Optional[DbUser]:
    user = get_user_by_email(email, db)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
