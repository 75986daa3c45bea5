"""Error types shared by the services and the web layer."""

from typing import Optional


class ConfigurationError(ValueError):
    """A required configuration value is missing or invalid."""


class DiscordAPIError(RuntimeError):
    """
    Discord could not answer a request in a way we can trust.

    Raised for transport failures, rate limiting (429), server errors (5xx)
    and rejected bot credentials (401/403). Callers must not treat this as
    a permission decision.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiError(Exception):
    """
    Error raised by request handlers and rendered as ``{error, message}``.

    Args:
        status_code: HTTP status code to respond with
        error: Short error title
        message: Optional human-readable detail
        extra: Optional additional fields merged into the response body
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        message: Optional[str] = None,
        extra: Optional[dict] = None,
    ):
        super().__init__(message or error)
        self.status_code = status_code
        self.error = error
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body


class NotFoundError(ApiError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(404, "Not found", message)


class ConflictError(ApiError):
    def __init__(self, message: str):
        super().__init__(409, "Conflict", message)


class BadRequestError(ApiError):
    def __init__(self, message: str):
        super().__init__(400, "Bad request", message)
