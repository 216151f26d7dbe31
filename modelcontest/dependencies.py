from typing import Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from .config import settings
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError, NotFoundError
from .models.models import Model, User, UserRole
from .utils.security import decode_access_token

SESSION_COOKIE = "access_token"

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/login", auto_error=False
)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from the bearer token or the session cookie"""
    token = token or request.cookies.get(SESSION_COOKIE)
    if not token:
        raise AuthenticationError("Authentication required")

    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        raise AuthenticationError("Could not validate credentials")

    user = db.get(User, int(payload["sub"]))
    if user is None:
        raise AuthenticationError("Could not validate credentials")
    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise AuthorizationError("Admin access required")
    return user


def get_current_model(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> Model:
    """The model profile owned by the caller"""
    model = db.query(Model).filter(Model.user_id == user.id).first()
    if model is None:
        raise NotFoundError("Model profile not found")
    return model


def get_voter_key(request: Request) -> str:
    """Identify an anonymous voter by client address"""
    if settings.trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
