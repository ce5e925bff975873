"""
Klaviyo Driver Exception Hierarchy

Structured exceptions for clear error handling by callers.
Each exception includes a descriptive message and structured data for programmatic handling.
"""

from typing import Dict, Any, Optional


class DriverError(Exception):
    """Base exception for all driver errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        """Return descriptive error message"""
        return f"{self.__class__.__name__}: {self.message}"


class AuthenticationError(DriverError):
    """
    Missing API key for the requested endpoint.

    Caller should:
    - Pass the public API key for track/identify
    - Pass the private API key for list operations
    - Ensure .env file has KLAVIYO_API_KEY / KLAVIYO_PRIVATE_API_KEY
    """
    pass


class ValidationError(DriverError):
    """
    Caller input failed validation before any request was sent.
    """
    pass


class InvalidIdentityError(ValidationError):
    """
    Neither a customer id nor an email was supplied.

    Caller should:
    - Identify the profile by email or id (at least one)
    """
    pass


class InvalidArgumentError(ValidationError):
    """
    Required operation arguments are missing (e.g. list id or profiles).
    """
    pass


class ApiError(DriverError):
    """
    The API answered with a non-success response.

    Carries the HTTP status code and the ``detail`` field of the body
    when the API provided one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.status_code = status_code
        self.detail = detail


class RateLimitError(ApiError):
    """
    API kept throttling after the configured number of retries.

    Driver automatically sleeps and resends throttled requests.
    This exception is only produced after max_throttle_retries is exhausted.

    Caller should:
    - Wait the advertised retry_after seconds
    - Spread requests out over time
    """

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        status_code: Optional[int] = 429,
        detail: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code=status_code, detail=detail, details=details)
        self.retry_after = retry_after


class TransportError(DriverError):
    """
    Cannot reach API (network issue, DNS, connection reset).
    """
    pass


class TimeoutError(TransportError):
    """
    Request timed out.

    Caller should:
    - Increase the timeout parameter
    - Retry later
    """
    pass


# Name used by earlier Klaviyo clients for the base error
KlaviyoError = DriverError
