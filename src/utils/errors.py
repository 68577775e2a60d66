from typing import Optional


class BlogAPIError(Exception):
    """Error raised by a handler and rendered as a JSON ``{message}`` body."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_dict(self) -> dict:
        content = {"message": self.message}
        if self.error is not None:
            content["error"] = self.error
        return content


class ValidationError(BlogAPIError):
    status_code = 400


class Forbidden(BlogAPIError):
    status_code = 403


class NotFound(BlogAPIError):
    status_code = 404


class InternalError(BlogAPIError):
    """Storage or infrastructure failure; exposes the underlying error text."""

    status_code = 500

    def __init__(self, message: str, cause: Exception):
        super().__init__(message, error=str(cause))
        self.cause = cause
