import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from .base import RequestModel


class UserBase(BaseModel):
    email: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class User(UserBase):
    id: uuid.UUID
    phone: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    email_verified: bool
    is_admin: bool
    referral_code: str | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserProfileUpdate(RequestModel):
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    phone: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


class SignupRequest(RequestModel):
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    referral_code: str | None = None


class LoginRequest(RequestModel):
    email: str | None = None
    password: str | None = None


class TokenRequest(RequestModel):
    token: str | None = None


class PasswordResetRequest(RequestModel):
    email: str | None = None


class PasswordResetConfirm(RequestModel):
    token: str | None = None
    password: str | None = None
