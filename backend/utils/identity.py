"""
Identity provider boundary.

The API trusts whatever identity the provider returns and mints its own
credentials from it. ``LocalIdentityProvider`` keeps users in the ``users``
table with bcrypt hashes; a hosted provider can be swapped in by overriding
the ``get_identity_provider`` dependency.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from database import SessionLocal
from models.users import User
from utils.auth_utils import Identity, TokenKind, create_token
from utils.errors import IdentityError, StorageError

logger = logging.getLogger("identity")

bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class IdentityProvider(ABC):
    @abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        """Return the identity behind valid credentials, else raise ``IdentityError``."""

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Identity:
        ...

    @abstractmethod
    def send_password_reset(self, email: str, redirect_url: str) -> None:
        ...

    @abstractmethod
    def update_password(self, user_id: str, new_password: str) -> None:
        ...


def log_mailer(email: str, link: str) -> None:
    # Delivery is left to a real mail integration; the link itself is never logged
    logger.info(f"Password reset link issued for {email}")


class LocalIdentityProvider(IdentityProvider):
    def __init__(self, session_factory: sessionmaker, mailer: Optional[Callable[[str, str], None]] = None):
        self.session_factory = session_factory
        self.mailer = mailer or log_mailer

    def sign_in(self, email: str, password: str) -> Identity:
        with self._session() as db:
            user = db.query(User).filter(User.email == _normalize(email)).first()
            if not user or not user.is_active or not bcrypt_context.verify(password, user.hashed_password):
                raise IdentityError("Invalid login credentials")
            return Identity(id=user.id, email=user.email)

    def sign_up(self, email: str, password: str) -> Identity:
        email = _normalize(email)
        with self._session() as db:
            if db.query(User).filter(User.email == email).first():
                raise IdentityError("User already registered")
            user = User(id=str(uuid.uuid4()), email=email, hashed_password=bcrypt_context.hash(password))
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise IdentityError("User already registered")
            return Identity(id=user.id, email=user.email)

    def send_password_reset(self, email: str, redirect_url: str) -> None:
        with self._session() as db:
            user = db.query(User).filter(User.email == _normalize(email)).first()
            if not user:
                raise IdentityError("User not found")
            identity = Identity(id=user.id, email=user.email)
        token = create_token(identity, TokenKind.RESET)
        self.mailer(identity.email, f"{redirect_url}?token={token}")

    def update_password(self, user_id: str, new_password: str) -> None:
        with self._session() as db:
            user = db.get(User, user_id)
            if not user:
                raise IdentityError("User not found")
            user.hashed_password = bcrypt_context.hash(new_password)
            db.commit()

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError(str(getattr(exc, "orig", None) or exc)) from exc
        finally:
            db.close()


def _normalize(email: str) -> str:
    return email.strip().lower()


def get_identity_provider() -> IdentityProvider:
    return LocalIdentityProvider(SessionLocal)
