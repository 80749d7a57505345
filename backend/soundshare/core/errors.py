"""Domain errors surfaced to the HTTP boundary."""
from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors caused by caller input."""

    code = "service_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_content(self) -> dict[str, dict[str, str]]:
        return {"error": {"code": self.code, "message": self.message}}


class InvalidInput(ServiceError):
    """Malformed request such as an unknown platform or an empty token."""

    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ServiceError):
    """The record does not exist or does not belong to the caller."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AccessDenied(NotFound):
    """Viewer lacks rights; rendered exactly like ``NotFound``."""

    def __init__(self, message: str = "Playlist not found.") -> None:
        super().__init__(message)


class PushProviderUnavailable(RuntimeError):
    """The push provider could not be initialised before any batch was sent."""


__all__ = [
    "AccessDenied",
    "InvalidInput",
    "NotFound",
    "PushProviderUnavailable",
    "ServiceError",
]
