"""Authenticated user models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """Cached user record. Storefront and admin users share this shape."""
    model_config = ConfigDict(extra="allow")  # keep fields added by the server

    id: Optional[int] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    gender: Optional[int] = None
    birthday: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    status: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LoginResult(BaseModel):
    """Payload of the login endpoints."""
    model_config = ConfigDict(extra="ignore")

    token: str
    user: Optional[UserProfile] = None
    expires_in: Optional[int] = None
