"""
Domain errors raised by the matching services.
Translated to HTTP responses by the handlers registered in findr.main.
"""

from typing import Optional

from fastapi import status


class FindrError(Exception):
    """Base class for errors reported to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(FindrError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You need to be logged in."


class InvalidOperation(FindrError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This operation is not allowed."


class NotFound(FindrError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class PersistenceFailure(FindrError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ExternalServiceError(FindrError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service unavailable. Please try again later."
