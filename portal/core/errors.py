import logging
from typing import Any, Dict


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error with an HTTP status attached.

    Raised for failures the user should see as a status plus message,
    as opposed to programming errors which surface as a generic 500.
    """

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.is_operational = True


class AuthenticationError(AppError):
    def __init__(self, message: str = "Invalid email or password", status_code: int = 401):
        super().__init__(message, status_code)


class SessionLookupError(AppError):
    def __init__(self, message: str = "Session store unavailable", status_code: int = 503):
        super().__init__(message, status_code)


class UpstreamError(AppError):
    def __init__(self, message: str = "Upstream service failed", status_code: int = 502):
        super().__init__(message, status_code)


def handle_error(error: BaseException) -> Dict[str, Any]:
    """Project any error onto a user-facing ``{message, status_code}`` pair."""
    if isinstance(error, AppError):
        logger.error(f"Error {error.status_code}: {error.message}")
        return {"message": error.message, "status_code": error.status_code}

    logger.error(f"Unexpected error: {error}")
    return {"message": "Something went wrong", "status_code": 500}
