"""
Response interpretation for Klaviyo API calls.

Classifies each HTTP response as success, throttled or failed. The
dispatcher decides what to do with the outcome; nothing here sleeps or
sends requests.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests

from .exceptions import ApiError


THROTTLED_PATTERN = re.compile(r"throttled")
DIGITS_PATTERN = re.compile(r"\d+")

# Extra second on top of the advertised wait
THROTTLE_MARGIN_SECONDS = 1


class ResponseStatus(Enum):
    """Outcome of a single request attempt"""
    SUCCESS = "success"
    THROTTLED = "throttled"
    FAILED = "failed"


@dataclass
class InterpretedResponse:
    """Classified response for one attempt"""
    status: ResponseStatus
    value: Any = None
    retry_after: Optional[int] = None
    error: Optional[ApiError] = None
    detail: Optional[str] = None


def _response_detail(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        detail = body.get("detail")
        return str(detail) if detail is not None else None
    return None


def parse_throttle_delay(detail: str) -> int:
    """
    Seconds to wait before resending a throttled request.

    Uses the first integer in the detail text plus a one second margin.

    Example:
        >>> parse_throttle_delay("Request was throttled. Expected available in 3 seconds.")
        4
    """
    match = DIGITS_PATTERN.search(detail)
    advertised = int(match.group()) if match else 0
    return advertised + THROTTLE_MARGIN_SECONDS


def interpret_response(response: requests.Response) -> InterpretedResponse:
    """
    Classify a v2 API response.

    Args:
        response: Completed HTTP response

    Returns:
        InterpretedResponse with status SUCCESS (parsed JSON in value),
        THROTTLED (retry_after seconds) or FAILED (ApiError in error)
    """
    status_code = response.status_code

    if status_code == 200:
        try:
            return InterpretedResponse(status=ResponseStatus.SUCCESS, value=response.json())
        except ValueError as e:
            return InterpretedResponse(
                status=ResponseStatus.FAILED,
                error=ApiError(
                    "API returned invalid JSON",
                    status_code=status_code,
                    details={"error": str(e), "body": response.text[:500]}
                )
            )

    detail = _response_detail(response)

    if status_code == 429 and detail is not None and THROTTLED_PATTERN.search(detail):
        return InterpretedResponse(
            status=ResponseStatus.THROTTLED,
            retry_after=parse_throttle_delay(detail),
            detail=detail,
        )

    return InterpretedResponse(
        status=ResponseStatus.FAILED,
        detail=detail,
        error=ApiError(
            f"{response.reason}: {detail}",
            status_code=status_code,
            detail=detail,
            details={"status_code": status_code, "api_response": detail}
        )
    )


def is_legacy_success(response: requests.Response) -> bool:
    """The v1 endpoints answer with the literal body ``1`` on success."""
    return response.text == "1"
