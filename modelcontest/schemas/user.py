from pydantic import BaseModel, EmailStr, Field, model_validator
from datetime import datetime
from typing import Optional
from ..models.models import UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str
    name: str = Field(min_length=2, max_length=100)
    stage_name: Optional[str] = None
    instagram_handle: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    profile_image: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class UserResponse(BaseModel):
    id: int
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class ModelResponse(BaseModel):
    id: int
    name: str
    stage_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    instagram_handle: Optional[str] = None
    location: Optional[str] = None
    total_votes: int
    active_contest_votes: int
    contests_won: int
    contests_joined: int
    current_ranking: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    stage_name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    instagram_handle: Optional[str] = None
    profile_image: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    model: Optional[ModelResponse] = None


class MeResponse(BaseModel):
    user: UserResponse
    model: Optional[ModelResponse] = None
