# socialnet/UAA/schemas.py
from pydantic import BaseModel, EmailStr
from typing import Optional


class ProviderLogin(BaseModel):
    provider: str
    token: str  # access token issued by the provider


class LoginResponse(BaseModel):
    user_id: str
    access_token: str
    token_type: str = "bearer"


class OAuthURLResponse(BaseModel):
    url: str
    state: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None


class ProfileResponse(BaseModel):
    user_id: str
    name: str
    email: EmailStr
    avatar: str
    provider: str
    created_at: str


class SignoutResponse(BaseModel):
    success: bool
