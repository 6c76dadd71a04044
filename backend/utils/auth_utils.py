"""
Authentication gate.

Credentials are HS256 JWTs minted by this service after the identity provider
has vouched for a user. Three kinds exist, each signed with its own secret:

- access: 15 minutes, required on every protected route
- refresh: 30 days, only exchangeable for a new access credential
- reset: 60 minutes, only accepted by the password update flow

A credential of one kind never verifies as another.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

import pytz
from dotenv import load_dotenv
from fastapi import Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError

from utils.errors import Forbidden, Unauthorized

load_dotenv()

logger = logging.getLogger("auth")

ALGORITHM = "HS256"

JWT_SECRET = os.getenv("JWT_SECRET", "dev-access-secret")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret")
JWT_RESET_SECRET = os.getenv("JWT_RESET_SECRET", "dev-reset-secret")

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "30"))
RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "60"))


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    RESET = "reset"


_SECRETS = {
    TokenKind.ACCESS: JWT_SECRET,
    TokenKind.REFRESH: JWT_REFRESH_SECRET,
    TokenKind.RESET: JWT_RESET_SECRET,
}

_LIFETIMES = {
    TokenKind.ACCESS: timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    TokenKind.REFRESH: timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    TokenKind.RESET: timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
}

if len(set(_SECRETS.values())) != len(_SECRETS):
    raise RuntimeError("JWT_SECRET, JWT_REFRESH_SECRET and JWT_RESET_SECRET must all differ")


@dataclass(frozen=True)
class Identity:
    id: str
    email: str


def create_token(identity: Identity, kind: TokenKind, now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(pytz.utc)
    claims = {
        "id": identity.id,
        "email": identity.email,
        "type": kind.value,
        "iat": issued_at,
        "exp": issued_at + _LIFETIMES[kind],
    }
    # Refresh and reset credentials can be revoked, so each carries its own id
    if kind in (TokenKind.REFRESH, TokenKind.RESET):
        claims["jti"] = uuid.uuid4().hex
    return jwt.encode(claims, _SECRETS[kind], algorithm=ALGORITHM)


def decode_token(token: str, kind: TokenKind) -> dict:
    """Verify signature, expiry and kind; return the claims.

    Raises:
        Forbidden: for any credential that does not verify as ``kind``.
    """
    try:
        claims = jwt.decode(token, _SECRETS[kind], algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise Forbidden(f"{kind.value.capitalize()} token expired")
    except JWTError:
        raise Forbidden(f"Invalid {kind.value} token")
    if claims.get("type") != kind.value or not claims.get("id"):
        raise Forbidden(f"Invalid {kind.value} token")
    return claims


def verify_token(token: str, kind: TokenKind) -> Identity:
    claims = decode_token(token, kind)
    return Identity(id=claims["id"], email=claims.get("email"))


def get_current_user(request: Request) -> Identity:
    """
    FastAPI dependency to validate the access credential from the Authorization header.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: Identity = Depends(get_current_user)):
            ...
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.strip():
        raise Unauthorized("Token not provided")

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) == 1 and parts[0].lower() == "bearer":
        raise Unauthorized("Token not provided")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Forbidden("Invalid authorization header format")

    return verify_token(parts[1], TokenKind.ACCESS)


class SessionState(str, Enum):
    ISSUED = "issued"
    REFRESHED = "refreshed"
    REVOKED = "revoked"


@dataclass
class AuthSession:
    """A user's credential pair and where it is in its lifecycle.

    issued -> refreshed (any number of times) -> revoked. Refreshing never
    rotates the refresh credential; revoking blacklists its ``jti`` so later
    refresh attempts fail.
    """
    user: Identity
    refresh_token: str
    access_token: Optional[str] = None
    jti: Optional[str] = None
    expires_at: Optional[datetime] = None
    state: SessionState = SessionState.ISSUED

    @classmethod
    def issue(cls, identity: Identity) -> "AuthSession":
        refresh_token = create_token(identity, TokenKind.REFRESH)
        claims = decode_token(refresh_token, TokenKind.REFRESH)
        return cls(
            user=identity,
            refresh_token=refresh_token,
            access_token=create_token(identity, TokenKind.ACCESS),
            jti=claims["jti"],
            expires_at=datetime.fromtimestamp(claims["exp"], pytz.utc),
        )

    @classmethod
    def resume(cls, refresh_token: str, is_revoked: Callable[[str], bool]) -> "AuthSession":
        claims = decode_token(refresh_token, TokenKind.REFRESH)
        session = cls(
            user=Identity(id=claims["id"], email=claims.get("email")),
            refresh_token=refresh_token,
            jti=claims.get("jti"),
            expires_at=datetime.fromtimestamp(claims["exp"], pytz.utc),
        )
        if session.jti and is_revoked(session.jti):
            session.state = SessionState.REVOKED
        return session

    def refresh(self) -> str:
        if self.state is SessionState.REVOKED:
            raise Forbidden("Refresh token revoked")
        self.access_token = create_token(self.user, TokenKind.ACCESS)
        self.state = SessionState.REFRESHED
        return self.access_token

    def revoke(self, record: Callable[[str, str, datetime], None]) -> None:
        if self.state is not SessionState.REVOKED and self.jti:
            record(self.jti, self.user.id, self.expires_at)
        self.access_token = None
        self.state = SessionState.REVOKED
