# homeservice_admin/exceptions.py
from typing import List, Optional

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


class AdminClientError(Exception):
    """Base class for every error raised by the admin client"""


class TransportError(AdminClientError):
    """The request never reached the server or no response came back"""

    def __init__(self, message: str, method: str = "", url: str = ""):
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url


class ApiError(AdminClientError):
    """The server rejected the request (non-2xx or success=false)"""

    def __init__(self, message: str = "", field_errors: Optional[List[str]] = None,
                 status: Optional[int] = None):
        self.message = message or ""
        self.field_errors = list(field_errors or [])
        self.status = status
        super().__init__(self.display_message)

    @property
    def display_message(self) -> str:
        """Text to show the user: message, then first field error"""
        if self.message:
            return self.message
        if self.field_errors:
            return self.field_errors[0]
        return DEFAULT_ERROR_MESSAGE


class UnauthorizedError(ApiError):
    """The admin token was rejected (HTTP 401)"""


class MalformedResponseError(ApiError):
    """A 2xx reply whose envelope or data does not have the expected shape"""

    def __init__(self, message: str = "Malformed response from server", status: Optional[int] = None):
        super().__init__(message, status=status)



class InvalidUploadError(AdminClientError):
    """An uploaded file was rejected before sending"""


class MutationInProgressError(AdminClientError):
    """The same kind of mutation is already pending"""

    def __init__(self, kind):
        super().__init__(f"{kind.value} is already in progress")
        self.kind = kind


def describe_error(error: Exception) -> str:
    """User-facing text for any error surfaced to the bot"""
    if isinstance(error, ApiError):
        return error.display_message
    if isinstance(error, TransportError):
        return error.message or DEFAULT_ERROR_MESSAGE
    return str(error) or DEFAULT_ERROR_MESSAGE
