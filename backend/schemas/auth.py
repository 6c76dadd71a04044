from pydantic import Field
from typing import Optional
from .base import CamelModel


class Credentials(CamelModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class SignupRequest(Credentials):
    password: str = Field(..., min_length=6)


class UserOut(CamelModel):
    id: str
    email: str


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    user: UserOut


class AccessToken(CamelModel):
    access_token: str


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    email: str


class UpdatePasswordRequest(CamelModel):
    token: str
    new_password: str = Field(..., min_length=6)
