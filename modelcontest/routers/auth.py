import logging
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from datetime import timedelta
from ..config import settings
from ..database import get_db
from ..dependencies import SESSION_COOKIE, get_current_user
from ..exceptions import AuthenticationError, ConflictError
from ..models.models import Model, User, UserRole
from ..schemas.user import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
)
from ..utils.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _issue_token(response: Response, user: User) -> str:
    expires = timedelta(minutes=settings.access_token_expire_minutes)
    token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=expires,
    )
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        max_age=int(expires.total_seconds()),
        samesite="lax",
    )
    return token


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    data: RegisterRequest, response: Response, db: Session = Depends(get_db)
):
    """Register a model account and sign it in"""
    # Check if user exists
    if db.query(User).filter(User.email == data.email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=data.email,
        password_hash=get_password_hash(data.password),
        role=UserRole.MODEL,
    )
    db.add(user)
    db.flush()

    model = Model(
        user_id=user.id,
        name=data.name,
        stage_name=data.stage_name,
        bio=data.bio,
        profile_image=data.profile_image,
        instagram_handle=data.instagram_handle,
        location=data.location,
        date_of_birth=data.date_of_birth,
    )
    db.add(model)
    db.commit()
    db.refresh(user)
    db.refresh(model)
    logger.info("Registered model %s (user %s)", model.id, user.id)

    token = _issue_token(response, user)
    return {
        "message": "Registration successful",
        "access_token": token,
        "user": user,
        "model": model,
    }


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
):
    """Authenticate user and return access token"""
    user = db.query(User).filter(User.email == credentials.email).first()

    if not user or not verify_password(
        credentials.password, user.password_hash
    ):
        raise AuthenticationError("Invalid email or password")

    token = _issue_token(response, user)
    return {
        "message": "Login successful",
        "access_token": token,
        "user": user,
        "model": user.model,
    }


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
def me(current_user: User = Depends(get_current_user)):
    """Get the signed-in user and their model profile"""
    return {"user": current_user, "model": current_user.model}
