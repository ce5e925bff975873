"""
Klaviyo Driver

A Python driver for the Klaviyo track, identify and list APIs.

Supports:
- Event tracking (legacy Track API)
- Profile identification (legacy Identify API)
- List membership (V2 Lists API)

Request handling:
- Legacy endpoints take one base64 encoded ``data`` query parameter
- V2 endpoints take JSON bodies / query strings plus the private API key
- Throttled V2 requests are resent after the advertised wait, up to a bound
"""

import os
import logging
import time
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Callable, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .encoding import encode_params
from .exceptions import (
    DriverError,
    AuthenticationError,
    RateLimitError,
    TransportError,
    TimeoutError,
)
from .params import (
    IdentifyOptions,
    TrackOptions,
    Timestamp,
    build_identify_params,
    build_subscribe_params,
    build_track_params,
)
from .responses import ResponseStatus, interpret_response, is_legacy_success


BASE_URL = "https://a.klaviyo.com/"


# ============================================================================
# Driver API Contract
# ============================================================================


@dataclass
class DriverCapabilities:
    """What the driver can do"""
    read: bool = True
    write: bool = False
    update: bool = False
    delete: bool = False
    batch_operations: bool = False


# ============================================================================
# Main Driver Implementation
# ============================================================================


class KlaviyoDriver:
    """
    Klaviyo API Driver.

    This driver handles two API generations:
    1. Legacy Track / Identify API - GET with base64 ``data`` query parameter,
       authenticated by the public API key inside the payload (``token``)
    2. V2 Lists API - JSON requests authenticated by the private API key
       (``api_key`` in body or query string)

    Error contract:
    - Validation errors are always raised before any request is sent
    - Legacy calls return True/False from the response body and raise
      TransportError when the request itself fails
    - V2 calls return the parsed JSON on success and return (not raise) the
      ApiError / TransportError on failure, unless raise_errors=True

    Example:
        client = KlaviyoDriver.from_env()
        client.track("Placed Order", email="jane@example.com", properties={"value": 42})
        lists = client.get_lists()
        client.close()
    """

    driver_name = "KlaviyoDriver"
    track_path = "api/track"
    identify_path = "api/identify"
    v2_prefix = "api/v2/"

    def __init__(
        self,
        api_key: Optional[str] = None,
        private_api_key: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        max_throttle_retries: int = 5,
        debug: bool = False,
        sleep: Optional[Callable[[float], None]] = None,
        raise_errors: bool = False,
        **kwargs
    ):
        """
        Initialize Klaviyo driver.

        Args:
            api_key: Public API key (required for track/identify)
            private_api_key: Private API key (required for list operations)
            timeout: Request timeout in seconds (default: 30)
            max_retries: Connection-level retry attempts (default: 3)
            max_throttle_retries: Resends allowed after throttled responses (default: 5)
            debug: Enable debug logging (default: False)
            sleep: Callable used to wait between throttled attempts (default: time.sleep)
            raise_errors: Raise V2 errors instead of returning them (default: False)
            **kwargs: Additional arguments

        Raises:
            AuthenticationError: If no API key is given at all
        """
        self.api_key = api_key
        self.private_api_key = private_api_key
        self.base_url = BASE_URL

        # Setup logging
        if debug:
            logging.basicConfig(level=logging.DEBUG)
        self.logger = logging.getLogger(__name__)
        if debug:
            self.logger.setLevel(logging.DEBUG)
        else:
            self.logger.setLevel(logging.WARNING)

        self.timeout = timeout or 30
        self.max_retries = max_retries if max_retries is not None else 3
        self.max_throttle_retries = max_throttle_retries if max_throttle_retries is not None else 5
        self.debug = debug
        self.raise_errors = raise_errors
        self.sleep = sleep or time.sleep

        self.session = self._create_session()

        self._validate_credentials()

    @classmethod
    def from_env(cls, **kwargs) -> "KlaviyoDriver":
        """
        Create driver instance from environment variables.

        Environment variables:
            KLAVIYO_API_KEY: Public API key
            KLAVIYO_PRIVATE_API_KEY: Private API key
            KLAVIYO_TIMEOUT: Request timeout in seconds (default: 30)
            KLAVIYO_MAX_THROTTLE_RETRIES: Throttle resend bound (default: 5)
            KLAVIYO_DEBUG: Enable debug logging (default: False)

        Returns:
            Configured KlaviyoDriver instance

        Raises:
            AuthenticationError: If neither key is set

        Example:
            driver = KlaviyoDriver.from_env()
            driver.identify(email="jane@example.com", properties={"plan": "pro"})
        """
        api_key = os.getenv("KLAVIYO_API_KEY")
        private_api_key = os.getenv("KLAVIYO_PRIVATE_API_KEY")
        timeout = int(os.getenv("KLAVIYO_TIMEOUT", "30"))
        max_throttle_retries = int(os.getenv("KLAVIYO_MAX_THROTTLE_RETRIES", "5"))
        debug = os.getenv("KLAVIYO_DEBUG", "false").lower() == "true"

        if not api_key and not private_api_key:
            raise AuthenticationError(
                "Missing Klaviyo credentials. Set KLAVIYO_API_KEY and/or KLAVIYO_PRIVATE_API_KEY.",
                details={
                    "env_vars": ["KLAVIYO_API_KEY", "KLAVIYO_PRIVATE_API_KEY"],
                    "suggestion": "Set KLAVIYO_API_KEY in your .env file"
                }
            )

        # Only set debug from env if not provided in kwargs
        if 'debug' not in kwargs:
            kwargs['debug'] = debug
        kwargs.setdefault('max_throttle_retries', max_throttle_retries)

        return cls(
            api_key=api_key,
            private_api_key=private_api_key,
            timeout=timeout,
            **kwargs
        )

    # ========================================================================
    # Driver API Contract
    # ========================================================================

    def get_capabilities(self) -> DriverCapabilities:
        """
        Return driver capabilities.

        Returns:
            DriverCapabilities with boolean flags for features
        """
        return DriverCapabilities(
            read=True,  # Lists API
            write=True,  # Track API
            update=True,  # Identify API, list membership
            delete=False,
            batch_operations=True  # subscribe_to_list takes many profiles
        )

    def list_objects(self) -> List[str]:
        """
        Discover the objects this driver works with.

        Returns:
            List of object names
        """
        return [
            "events",
            "profiles",
            "lists",
        ]

    # ========================================================================
    # Legacy Operations (Track / Identify API)
    # ========================================================================

    def track(
        self,
        event: str,
        id: Optional[str] = None,
        email: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        customer_properties: Optional[Dict[str, Any]] = None,
        time: Optional[Timestamp] = None,
    ) -> bool:
        """
        Record an event for a profile (Track API).

        Args:
            event: Event name (e.g., "Placed Order")
            id: External customer id (optional if email provided)
            email: Customer email (optional if id provided)
            properties: Properties of the event itself
            customer_properties: Profile properties to set alongside the event
            time: When the event happened (datetime, date or epoch seconds)

        Returns:
            True if the API accepted the event

        Raises:
            InvalidIdentityError: If neither id nor email provided
            TransportError: If the request could not be sent

        Example:
            client.track(
                "Placed Order",
                email="jane@example.com",
                properties={"value": 42.5},
                time=datetime(2025, 1, 1, 12, 0)
            )
        """
        options = TrackOptions(
            id=id,
            email=email,
            properties=properties or {},
            customer_properties=customer_properties or {},
            time=time,
        )
        return self._track(event, options)

    def track_once(
        self,
        event: str,
        id: Optional[str] = None,
        email: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        customer_properties: Optional[Dict[str, Any]] = None,
        time: Optional[Timestamp] = None,
    ) -> bool:
        """
        Record an event only the first time it is seen for the profile.

        Same arguments as track(). The API does the deduplication; the
        payload carries ``__track_once__: true``.
        """
        options = TrackOptions(
            id=id,
            email=email,
            properties=properties or {},
            customer_properties=customer_properties or {},
            time=time,
            track_once=True,
        )
        return self._track(event, options)

    def identify(
        self,
        id: Optional[str] = None,
        email: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Create or update profile properties (Identify API).

        Args:
            id: External customer id (optional if email provided)
            email: Customer email (optional if id provided)
            properties: Profile properties to add or update

        Returns:
            True if the API accepted the update

        Raises:
            InvalidIdentityError: If neither id nor email provided
            TransportError: If the request could not be sent

        Example:
            client.identify(email="jane@example.com", properties={"plan": "pro"})
        """
        self._require_public_key()
        options = IdentifyOptions(id=id, email=email, properties=properties or {})
        params = build_identify_params(self.api_key, options)

        if self.debug:
            self.logger.debug(f"[Identify API] GET {self.base_url}{self.identify_path} properties={list(params['properties'])}")

        return self._request(self.identify_path, params)

    # ========================================================================
    # V2 Operations (Lists API)
    # ========================================================================

    def subscribe_to_list(
        self,
        list_id: str,
        profiles: List[Dict[str, Any]]
    ) -> Union[Dict[str, Any], List[Any], DriverError]:
        """
        Add profiles to a list (V2 Lists API).

        Args:
            list_id: Klaviyo list id
            profiles: Profile objects, each with at least an email or phone_number

        Returns:
            Parsed JSON response, or the ApiError / TransportError describing
            the failure (raised instead when raise_errors=True)

        Raises:
            InvalidArgumentError: If list_id or profiles are empty

        Example:
            result = client.subscribe_to_list("AbC123", [{"email": "jane@example.com"}])
            if isinstance(result, DriverError):
                ...
        """
        params = build_subscribe_params(list_id, profiles)

        if self.debug:
            self.logger.debug(f"[Lists API] POST list/{list_id}/members profiles={len(profiles)}")

        return self._request_v2(f"list/{list_id}/members", method="POST", params=params)

    def get_lists(self) -> Union[Dict[str, Any], List[Any], DriverError]:
        """
        Fetch all lists in the account (V2 Lists API).

        Returns:
            Parsed JSON response, or the ApiError / TransportError describing
            the failure (raised instead when raise_errors=True)
        """
        if self.debug:
            self.logger.debug("[Lists API] GET lists")

        return self._request_v2("lists")

    # ========================================================================
    # Utility Methods
    # ========================================================================

    def close(self):
        """
        Close session and cleanup resources.

        Example:
            client = KlaviyoDriver.from_env()
            try:
                client.track("Viewed Page", email="jane@example.com")
            finally:
                client.close()
        """
        if self.session:
            self.session.close()
            if self.debug:
                self.logger.debug("Session closed")

    # ========================================================================
    # Internal Methods
    # ========================================================================

    def _track(self, event: str, options: TrackOptions) -> bool:
        self._require_public_key()
        params = build_track_params(self.api_key, event, options)

        if self.debug:
            self.logger.debug(f"[Track API] GET {self.base_url}{self.track_path} event={event!r} track_once={options.track_once}")

        return self._request(self.track_path, params)

    def _request(self, path: str, params: Dict[str, Any]) -> bool:
        """
        Send a legacy GET request.

        Returns:
            True if the response body is exactly "1"

        Raises:
            TimeoutError: If the request timed out
            TransportError: If the request could not be sent
        """
        url = f"{self.base_url}{path}?{encode_params(params)}"

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise TimeoutError(
                f"Request to {path} timed out",
                details={"timeout": self.timeout, "path": path}
            )
        except requests.RequestException as e:
            raise TransportError(
                f"Request to {path} failed: {e}",
                details={"path": path, "error": str(e)}
            )

        accepted = is_legacy_success(response)
        if self.debug:
            self.logger.debug(f"[{path}] status={response.status_code} accepted={accepted}")
        return accepted

    def _request_v2(
        self,
        url: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None
    ) -> Union[Dict[str, Any], List[Any], DriverError]:
        """
        Send a V2 request, resending it while the API reports throttling.

        Throttle state lives in this call only. Errors from the API or the
        transport are returned unless raise_errors is set.
        """
        self._require_private_key()

        params = dict(params or {})
        params["api_key"] = self.private_api_key
        headers = {"Content-Type": "application/json"}
        endpoint = f"{self.base_url}{self.v2_prefix}{url}"

        try:
            return self._dispatch_with_throttle_retry(method, endpoint, params, headers)
        except DriverError as e:
            return self._v2_failure(method, url, e)
        except requests.RequestException as e:
            return self._v2_failure(method, url, TransportError(
                f"Request to {url} failed: {e}",
                details={"url": url, "error": str(e)}
            ))

    def _v2_failure(self, method: str, url: str, error: DriverError) -> DriverError:
        if self.raise_errors:
            raise error
        self.logger.warning(f"[Lists API] {method} {url} failed: {error}")
        return error

    def _dispatch_with_throttle_retry(
        self,
        method: str,
        endpoint: str,
        params: Dict[str, Any],
        headers: Dict[str, str]
    ) -> Any:
        throttled_attempts = 0

        while True:
            response = self._send(method, endpoint, params, headers)
            outcome = interpret_response(response)

            if outcome.status == ResponseStatus.SUCCESS:
                return outcome.value

            if outcome.status == ResponseStatus.FAILED:
                raise outcome.error

            if throttled_attempts >= self.max_throttle_retries:
                raise RateLimitError(
                    f"Still throttled after {throttled_attempts} retries: {outcome.detail}",
                    retry_after=outcome.retry_after,
                    detail=outcome.detail,
                    details={
                        "status_code": 429,
                        "retry_after": outcome.retry_after,
                        "attempts": throttled_attempts + 1,
                        "api_response": outcome.detail
                    }
                )

            throttled_attempts += 1
            self.logger.warning(
                f"Throttled, retrying in {outcome.retry_after} seconds "
                f"(attempt {throttled_attempts}/{self.max_throttle_retries})"
            )
            self.sleep(outcome.retry_after)

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Dict[str, Any],
        headers: Dict[str, str]
    ) -> requests.Response:
        if self.debug:
            self.logger.debug(f"[Lists API] {method} {endpoint}")

        try:
            if method == "POST":
                return self.session.post(endpoint, headers=headers, json=params, timeout=self.timeout)
            return self.session.get(endpoint, headers=headers, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise TimeoutError(
                f"{method} {endpoint} timed out",
                details={"timeout": self.timeout}
            )
        except (TypeError, ValueError) as e:
            # e.g. a profile value json.dumps cannot serialize
            raise TransportError(
                f"{method} {endpoint} could not be sent: {e}",
                details={"error": str(e), "error_type": type(e).__name__}
            )

    def _create_session(self) -> requests.Session:
        """
        Create HTTP session.

        Content-Type is set per request: legacy endpoints send no body,
        V2 endpoints send JSON.

        Returns:
            Configured requests.Session
        """
        session = requests.Session()

        session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"{self.driver_name}-Python-Driver/1.0.0",
        })

        # Connection failures and gateway errors only; 429 belongs to the throttle loop
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
            respect_retry_after_header=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        return session

    def _validate_credentials(self):
        """
        Validate credentials at initialization (fail fast!).

        Raises:
            AuthenticationError: Neither key given
        """
        if not self.api_key and not self.private_api_key:
            raise AuthenticationError(
                "API key or private API key required",
                details={"suggestion": "Set KLAVIYO_API_KEY environment variable"}
            )

        if self.debug:
            if self.api_key:
                self.logger.debug(f"[Validation] API Key: {self.api_key[:6]}...")
            else:
                self.logger.debug("[Validation] Warning: API Key not set (required for track/identify)")
            if self.private_api_key:
                self.logger.debug(f"[Validation] Private API Key: {self.private_api_key[:6]}...")
            else:
                self.logger.debug("[Validation] Warning: Private API Key not set (required for lists)")

    def _require_public_key(self):
        if not self.api_key:
            raise AuthenticationError(
                "Track and Identify APIs require the public API key",
                details={"api_key_set": False}
            )

    def _require_private_key(self):
        if not self.private_api_key:
            raise AuthenticationError(
                "Lists API requires the private API key",
                details={"private_api_key_set": False}
            )


# ============================================================================
# Alias
# ============================================================================

KlaviyoClient = KlaviyoDriver
