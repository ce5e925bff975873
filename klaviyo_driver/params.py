"""
Request parameter building for Klaviyo operations.

Turns caller-supplied identity and property arguments into the canonical
payload mappings sent to the API. Nothing here performs I/O.
"""

import time as _time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from .exceptions import InvalidArgumentError, InvalidIdentityError, ValidationError


Timestamp = Union[datetime, date, int, float]


@dataclass
class IdentifyOptions:
    """Recognized identify options and their defaults"""
    id: Optional[str] = ""
    email: Optional[str] = ""
    properties: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TrackOptions:
    """Recognized track options and their defaults"""
    id: Optional[str] = ""
    email: Optional[str] = ""
    properties: Dict[str, Any] = field(default_factory=dict)
    customer_properties: Dict[str, Any] = field(default_factory=dict)
    time: Optional[Timestamp] = None
    track_once: bool = False


def to_epoch_seconds(value: Timestamp) -> int:
    """
    Convert a timestamp to integer epoch seconds.

    Naive datetimes and dates are interpreted in local time.
    """
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, date):
        return int(_time.mktime(value.timetuple()))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    raise ValidationError(
        f"Unsupported time value: {value!r}",
        details={"provided": type(value).__name__, "expected": "datetime, date or epoch seconds"}
    )


def merge_identity(
    properties: Optional[Dict[str, Any]],
    id: Optional[str] = None,
    email: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Copy a properties bag and merge the identity fields into it.

    Args:
        properties: Caller-supplied properties (never mutated)
        id: External customer id
        email: Customer email

    Returns:
        New mapping with ``email`` and/or ``id`` set

    Raises:
        InvalidIdentityError: If both id and email are empty
    """
    if not email and not id:
        raise InvalidIdentityError(
            "You must identify a user by email or ID",
            details={"suggestion": "Pass id=... or email=..."}
        )

    merged = dict(properties or {})
    if email:
        merged["email"] = email
    if id:
        merged["id"] = id
    return merged


def build_track_params(token: str, event: str, options: TrackOptions) -> Dict[str, Any]:
    """
    Build the payload for the track endpoint.

    The identity goes into ``customer_properties``; the event's own
    ``properties`` are sent as given.
    """
    if not event:
        raise ValidationError(
            "event name is required",
            details={"provided": event}
        )

    customer_properties = merge_identity(
        options.customer_properties, id=options.id, email=options.email
    )

    params: Dict[str, Any] = {
        "token": token,
        "event": event,
        "properties": dict(options.properties or {}),
        "customer_properties": customer_properties,
        "ip": "",
    }
    if options.time is not None:
        params["time"] = to_epoch_seconds(options.time)
    if options.track_once:
        params["__track_once__"] = True
    return params


def build_identify_params(token: str, options: IdentifyOptions) -> Dict[str, Any]:
    """Build the payload for the identify endpoints."""
    properties = merge_identity(options.properties, id=options.id, email=options.email)
    return {
        "token": token,
        "properties": properties,
    }


def build_subscribe_params(list_id: str, profiles: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """
    Build the body for adding profiles to a list.

    Raises:
        InvalidArgumentError: If list_id or profiles are empty
    """
    if not list_id or not profiles:
        raise InvalidArgumentError(
            "You must provide a list id and profile(s)",
            details={"list_id": list_id, "profiles_count": len(profiles or [])}
        )
    return {"profiles": list(profiles)}
