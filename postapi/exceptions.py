"""
Domain errors raised by the service layer.

Each error carries the HTTP status code it maps to; ``postapi.main``
registers a single handler that renders ``{"detail": message}``.
"NotFound" and "Unauthorized" are deliberately separate types so a client
can tell a missing resource from a forbidden one.
"""


class PostAPIError(Exception):
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialError(PostAPIError):
    """The bearer credential is missing, malformed, or lacks a required claim."""

    status_code = 401
    default_message = "Invalid or missing credential"


class NotFoundError(PostAPIError):
    status_code = 404
    default_message = "Resource not found"


class UnauthorizedError(PostAPIError):
    """The caller is authenticated but may not act on the target resource."""

    status_code = 403
    default_message = "You are not allowed to modify this resource"


class StoreFailureError(PostAPIError):
    """A persistence operation failed and its transaction was rolled back."""

    status_code = 503
    default_message = "The data store could not complete the operation"
