from __future__ import annotations


class ResourceError(Exception):
    """Base for errors that map onto an HTTP status and the {"error": ...} envelope."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ResourceError, ValueError):
    status_code = 400


class PayloadTooLargeError(ValidationError):
    status_code = 413


class NotFoundError(ResourceError, KeyError):
    status_code = 404

    def __str__(self) -> str:
        # KeyError would quote the message
        return self.message


class AuthError(ResourceError):
    status_code = 401


class MissingTokenError(AuthError):
    status_code = 401


class InvalidTokenError(AuthError):
    status_code = 403
