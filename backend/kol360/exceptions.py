from typing import Optional


class ApiError(Exception):
    """Base error raised by services; rendered as JSON by the registered handler."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, status_code: Optional[int] = None, error: Optional[str] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error is not None:
            self.error = error
        super().__init__(message)


class BadRequestError(ApiError):
    status_code = 400
    error = "Bad Request"


class UnauthorizedError(ApiError):
    status_code = 401
    error = "Unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(ApiError):
    status_code = 403
    error = "Forbidden"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundError(ApiError):
    status_code = 404
    error = "Not Found"

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found" if not identifier else f"{resource} {identifier} not found"
        super().__init__(message)


class ConflictError(ApiError):
    status_code = 409
    error = "Conflict"
