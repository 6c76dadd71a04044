import os
import logging
from datetime import datetime
from functools import partial
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from starlette import status

from crud import revoked_tokens as crud_revoked_tokens
from database import get_db
from schemas.auth import (
    AccessToken,
    Credentials,
    RefreshRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenPair,
    UpdatePasswordRequest,
)
from schemas.base import Message
from utils.auth_utils import AuthSession, Identity, TokenKind, decode_token
from utils.errors import Forbidden, IdentityError, StorageError, Unauthorized, ValidationError
from utils.identity import IdentityProvider, get_identity_provider

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("auth")

REDIRECT_URL = os.getenv("REDIRECT_URL", "http://localhost:5173")
RESET_MESSAGE = "If the email is registered, a recovery link has been sent."


def _token_pair(identity: Identity) -> TokenPair:
    session = AuthSession.issue(identity)
    return TokenPair(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user={"id": identity.id, "email": identity.email},
    )


@router.post("/login", response_model=TokenPair)
def login(credentials: Credentials, provider: IdentityProvider = Depends(get_identity_provider)):
    logger.info(f"[LOGIN] Attempt for {credentials.email}")
    try:
        identity = provider.sign_in(credentials.email, credentials.password)
    except IdentityError as exc:
        logger.info(f"[LOGIN] Failed for {credentials.email}: {exc.message}")
        raise
    logger.info(f"[LOGIN] Success for {credentials.email}")
    return _token_pair(identity)


@router.post("/signup", response_model=TokenPair, status_code=status.HTTP_201_CREATED)
def signup(credentials: SignupRequest, provider: IdentityProvider = Depends(get_identity_provider)):
    logger.info(f"[SIGNUP] Attempt for {credentials.email}")
    try:
        identity = provider.sign_up(credentials.email, credentials.password)
    except IdentityError as exc:
        logger.info(f"[SIGNUP] Failed for {credentials.email}: {exc.message}")
        raise ValidationError(exc.message)
    logger.info(f"[SIGNUP] Success for {credentials.email}")
    return _token_pair(identity)


@router.post("/refresh", response_model=AccessToken)
def refresh(body: Optional[RefreshRequest] = None, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token. The refresh token is not rotated."""
    if body is None or not body.refresh_token:
        raise Unauthorized("Refresh token not provided")
    session = AuthSession.resume(body.refresh_token, is_revoked=partial(crud_revoked_tokens.is_revoked, db))
    access_token = session.refresh()
    logger.info(f"[REFRESH] Success for {session.user.email}")
    return AccessToken(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(body: Optional[RefreshRequest] = None, db: Session = Depends(get_db)):
    """Revoke a refresh token so it can no longer be exchanged."""
    if body is None or not body.refresh_token:
        raise Unauthorized("Refresh token not provided")
    session = AuthSession.resume(body.refresh_token, is_revoked=partial(crud_revoked_tokens.is_revoked, db))
    session.revoke(partial(crud_revoked_tokens.revoke, db))
    logger.info(f"[LOGOUT] Session revoked for {session.user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reset-password", response_model=Message)
def reset_password(body: ResetPasswordRequest, provider: IdentityProvider = Depends(get_identity_provider)):
    """Always answers the same way, whether or not the email exists."""
    logger.info(f"[RESET PASSWORD] Attempt for {body.email}")
    try:
        provider.send_password_reset(body.email, f"{REDIRECT_URL}/reset-password")
    except (IdentityError, StorageError) as exc:
        logger.info(f"[RESET PASSWORD] Failed for {body.email}: {exc.message}")
    except Exception:
        # Mailer failures must not tell a registered email apart from an unknown one
        logger.exception(f"[RESET PASSWORD] Link delivery failed for {body.email}")
    else:
        logger.info(f"[RESET PASSWORD] Link sent to {body.email}")
    return Message(message=RESET_MESSAGE)


@router.post("/update-password", response_model=Message)
def update_password(
    body: UpdatePasswordRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    db: Session = Depends(get_db),
):
    """Set a new password using the credential from the reset link. Each link works once."""
    claims = decode_token(body.token, TokenKind.RESET)
    identity = Identity(id=claims["id"], email=claims.get("email"))
    jti = claims.get("jti")
    if not jti or crud_revoked_tokens.is_revoked(db, jti):
        raise Forbidden("Reset token already used")
    try:
        provider.update_password(identity.id, body.new_password)
    except IdentityError as exc:
        raise ValidationError(exc.message)
    crud_revoked_tokens.revoke(db, jti, identity.id, datetime.fromtimestamp(claims["exp"], pytz.utc))
    logger.info(f"[UPDATE PASSWORD] Password changed for {identity.email}")
    return Message(message="Password updated")
