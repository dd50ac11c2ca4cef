from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    confirm_password: str
    name: Optional[str] = Field(default=None, max_length=80, description="Shown on the leaderboard")


class LoginResponse(BaseModel):
    message: str
    token_set: bool


class RegisterResponse(BaseModel):
    message: str


class LogoutResponse(BaseModel):
    message: str


class AuthTokenPayload(BaseModel):
    """JWT claims. `sub` is the account email; `role` is STUDENT or ADMIN."""
    sub: str
    exp: Optional[datetime] = None
    role: Optional[str] = None
