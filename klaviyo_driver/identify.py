"""
Identify-only entry point.

Some integrations only manage profile properties and post to the bare
``/identify`` endpoint rather than ``/api/identify``.
"""

from .client import KlaviyoDriver


class KlaviyoIdentify(KlaviyoDriver):
    """
    Driver for identifying customers and managing profile properties.

    Uses the bare ``identify`` legacy endpoint; the payload is the same as
    KlaviyoDriver.identify().

    Example:
        identify = KlaviyoIdentify(api_key="pk_123")
        identify.identify(id="cust-42", properties={"plan": "pro"})
    """

    driver_name = "KlaviyoIdentify"
    identify_path = "identify"
