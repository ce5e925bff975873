"""
Pytest configuration and shared fixtures for Klaviyo driver tests.

Provides:
- Mock client fixtures
- Mock API responses
- Test data
- Configuration
"""

import json
import threading
import pytest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock, MagicMock, patch
from typing import Dict, Any


def make_response(status_code: int = 200, json_body: Any = None, text: str = "", reason: str = "OK"):
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up mock environment variables."""
    monkeypatch.setenv("KLAVIYO_API_KEY", "pk_test_12345")
    monkeypatch.setenv("KLAVIYO_PRIVATE_API_KEY", "sk_test_67890")
    monkeypatch.setenv("KLAVIYO_TIMEOUT", "30")
    monkeypatch.setenv("KLAVIYO_MAX_THROTTLE_RETRIES", "5")
    monkeypatch.setenv("KLAVIYO_DEBUG", "false")


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    session = MagicMock()
    session.headers = {}
    session.get = MagicMock()
    session.post = MagicMock()
    return session


@pytest.fixture
def mock_sleep():
    """Fake clock: records requested waits instead of sleeping."""
    return Mock()


@pytest.fixture
def klaviyo_client(mock_session, mock_sleep):
    """Create a test Klaviyo driver instance with mocked session."""
    from klaviyo_driver import KlaviyoDriver

    with patch.object(KlaviyoDriver, '_create_session', return_value=mock_session):
        client = KlaviyoDriver(
            api_key="pk_test_12345",
            private_api_key="sk_test_67890",
            timeout=30,
            max_retries=3,
            max_throttle_retries=3,
            debug=False,
            sleep=mock_sleep
        )
        client.session = mock_session
        return client


@pytest.fixture
def accepted_response():
    """Legacy endpoint success body."""
    return make_response(status_code=200, text="1")


@pytest.fixture
def rejected_response():
    """Legacy endpoint rejection body."""
    return make_response(status_code=200, text="0")


@pytest.fixture
def mock_lists_response() -> Dict[str, Any]:
    """Mock response from get_lists API."""
    return {
        "data": [
            {"list_id": "AbC123", "list_name": "Newsletter"},
            {"list_id": "XyZ789", "list_name": "VIP Customers"}
        ]
    }


@pytest.fixture
def sample_profiles() -> list:
    """Profiles to add to a list."""
    return [
        {"email": "jane@example.com", "first_name": "Jane"},
        {"email": "john@example.com", "phone_number": "+15005550006"}
    ]


@pytest.fixture
def throttled_response():
    """Mock 429 throttle response."""
    return make_response(
        status_code=429,
        json_body={"detail": "Request was throttled. Expected available in 3 seconds."},
        reason="Too Many Requests"
    )


@pytest.fixture
def bad_request_response():
    """Mock 400 error response."""
    return make_response(
        status_code=400,
        json_body={"detail": "List does not exist"},
        reason="Bad Request"
    )


class _QueuedReplyHandler(BaseHTTPRequestHandler):
    """Serves the server's queued (status, headers, body) replies in order."""

    def do_GET(self):
        self._reply()

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        self._reply()

    def _reply(self):
        self.server.hits += 1
        status, headers, body = self.server.replies.pop(0)
        payload = json.dumps(body).encode("utf-8")
        self.send_response(status)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_api():
    """Local HTTP server answering with queued replies; exposes .url, .replies and .hits."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _QueuedReplyHandler)
    server.replies = []
    server.hits = 0
    server.url = f"http://127.0.0.1:{server.server_address[1]}/"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
