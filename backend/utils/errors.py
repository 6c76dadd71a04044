"""
Error taxonomy shared by the authentication gate, the gateway and the
mutation sequences.

Every error carries the HTTP status it maps to; ``main.py`` renders them as
``{"error": message}``.
"""
from starlette import status


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(AppError):
    """No credential was presented."""
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AppError):
    """A credential was presented but is invalid, expired or of the wrong kind."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    """The entity does not exist or is owned by another user."""
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(AppError):
    """The persistence layer failed; the message is the driver's, verbatim."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class IdentityError(AppError):
    """The identity provider rejected the request (bad credentials, duplicate signup, ...)."""
    status_code = status.HTTP_401_UNAUTHORIZED


class TenantScopeError(ValueError):
    """A gateway call was issued without its mandatory scope filter.

    Raised before any storage access. It signals a programming error rather
    than a request error, so it is not an ``AppError``.
    """
