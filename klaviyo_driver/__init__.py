"""
Klaviyo Python Driver

A driver for the Klaviyo track, identify and list APIs.

Example:
    Basic usage:

    >>> from klaviyo_driver import KlaviyoDriver
    >>>
    >>> # Create driver from environment
    >>> client = KlaviyoDriver.from_env()
    >>>
    >>> # Track an event
    >>> client.track(
    ...     "Placed Order",
    ...     email="jane@example.com",
    ...     properties={"value": 42.5}
    ... )
    True
    >>>
    >>> # Update a profile
    >>> client.identify(id="cust-42", properties={"plan": "pro"})
    True
    >>>
    >>> # Add profiles to a list
    >>> result = client.subscribe_to_list("AbC123", [{"email": "jane@example.com"}])
    >>> if isinstance(result, DriverError):
    ...     print(f"Subscribe failed: {result.message}")
    >>>
    >>> client.close()

Supports:
    - Event tracking (Track API, track-once semantics)
    - Profile identification (Identify API, /api/identify and /identify)
    - List membership and list lookup (V2 Lists API)

Features:
    - Structured exception hierarchy
    - Bounded retry on throttled (429) responses, honoring the advertised wait
    - Connection-level retry for gateway errors
    - Debug logging mode

Authentication:
    Set environment variables:
    - KLAVIYO_API_KEY: Public key, used by track/identify
    - KLAVIYO_PRIVATE_API_KEY: Private key, used by the Lists API
    - KLAVIYO_DEBUG: "true" or "false" (default: "false")
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .client import (
    BASE_URL,
    KlaviyoDriver,
    KlaviyoClient,
    DriverCapabilities,
)

from .identify import KlaviyoIdentify

from .params import (
    IdentifyOptions,
    TrackOptions,
)

from .exceptions import (
    DriverError,
    KlaviyoError,
    AuthenticationError,
    ValidationError,
    InvalidIdentityError,
    InvalidArgumentError,
    ApiError,
    RateLimitError,
    TransportError,
    TimeoutError,
)

__all__ = [
    # Driver classes
    "KlaviyoDriver",
    "KlaviyoClient",
    "KlaviyoIdentify",
    "BASE_URL",
    # Data classes
    "DriverCapabilities",
    "IdentifyOptions",
    "TrackOptions",
    # Exceptions
    "DriverError",
    "KlaviyoError",
    "AuthenticationError",
    "ValidationError",
    "InvalidIdentityError",
    "InvalidArgumentError",
    "ApiError",
    "RateLimitError",
    "TransportError",
    "TimeoutError",
]
