"""Error taxonomy for the content client.

Every error the client raises derives from ``CMSClientError`` so callers
can catch the family at once and still branch on the specific kind.
"""

from typing import Any, Optional


class CMSClientError(Exception):
    """Base class for all errors raised by the client."""


class ConfigurationError(CMSClientError):
    """Missing or invalid client configuration."""


class NetworkError(CMSClientError):
    """Transport failure before any response was received. Not retried."""

    def __init__(self, message: str, original_exception: Optional[BaseException] = None):
        self.original_exception = original_exception
        super().__init__(message)


class RequestTimeoutError(NetworkError):
    """The request did not complete within the configured timeout."""


class ApiError(CMSClientError):
    """The CMS answered with a non-2xx status."""

    def __init__(self, status: int, status_text: str, details: Optional[Any] = None):
        self.status = status
        self.status_text = status_text
        self.details = details
        super().__init__(f"API error {status}: {status_text}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class QuotaExceededError(CMSClientError):
    """The monthly request quota is used up; the request never left the process."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Monthly request quota exceeded ({count}/{limit})")
