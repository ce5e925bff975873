"""
Legacy payload encoding for the v1 track/identify endpoints.

The v1 endpoints accept a single ``data`` query parameter holding the
base64-encoded JSON payload.
"""

import base64
import json
from typing import Any, Dict
from urllib.parse import parse_qs, quote_plus


def encode_params(params: Dict[str, Any]) -> str:
    """
    Encode a payload mapping as a ``data=<...>`` query string.

    Args:
        params: JSON-serializable payload (key order is preserved)

    Returns:
        Query string ready to append after ``?``

    Example:
        >>> encode_params({"token": "abc"})
        'data=eyJ0b2tlbiI6ImFiYyJ9'
    """
    payload = json.dumps(params, separators=(",", ":"))
    encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
    encoded = encoded.replace("\n", "")
    return f"data={quote_plus(encoded)}"


def decode_params(query: str) -> Dict[str, Any]:
    """Decode a query string produced by encode_params back into the payload."""
    values = parse_qs(query).get("data")
    if not values:
        raise ValueError("query string has no data parameter")
    return json.loads(base64.b64decode(values[0]).decode("utf-8"))
