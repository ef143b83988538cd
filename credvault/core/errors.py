"""Typed failures raised by the credential lifecycle and the access gate.

Each :class:`AppError` carries the HTTP status the transport layer answers
with; the handlers registered in ``credvault.main`` turn them into the
``{status, success, message}`` envelope.
"""
from __future__ import annotations

from typing import Dict, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class BadRequest(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class Unavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable"


class Internal(AppError):
    pass


class TokenError(Exception):
    """Raised by the token signer; never sent to clients as-is."""


class InvalidToken(TokenError):
    pass


class ExpiredToken(TokenError):
    pass
