"""
Tests for response classification.
"""

import pytest

from klaviyo_driver import ApiError
from klaviyo_driver.responses import (
    ResponseStatus,
    interpret_response,
    is_legacy_success,
    parse_throttle_delay,
)
from klaviyo_driver.tests.conftest import make_response


class TestInterpretResponse:
    """Test v2 response classification."""

    def test_success(self):
        outcome = interpret_response(make_response(200, {"foo": 1}))

        assert outcome.status == ResponseStatus.SUCCESS
        assert outcome.value == {"foo": 1}
        assert outcome.error is None

    def test_success_with_invalid_json(self):
        outcome = interpret_response(make_response(200, None, text="<html>"))

        assert outcome.status == ResponseStatus.FAILED
        assert isinstance(outcome.error, ApiError)
        assert outcome.error.status_code == 200

    def test_throttled(self):
        response = make_response(
            429,
            {"detail": "Request was throttled. Expected available in 3 seconds."},
            reason="Too Many Requests"
        )
        outcome = interpret_response(response)

        assert outcome.status == ResponseStatus.THROTTLED
        assert outcome.retry_after == 4
        assert outcome.error is None

    def test_throttled_short_detail(self):
        outcome = interpret_response(make_response(429, {"detail": "throttled, try again in 3 seconds"}))
        assert outcome.retry_after == 4

    def test_429_without_throttle_detail(self):
        outcome = interpret_response(make_response(429, {"detail": "slow down"}, reason="Too Many Requests"))

        assert outcome.status == ResponseStatus.FAILED
        assert outcome.error.status_code == 429

    def test_429_without_json(self):
        outcome = interpret_response(make_response(429, None, text="Too Many Requests", reason="Too Many Requests"))

        assert outcome.status == ResponseStatus.FAILED
        assert outcome.error.detail is None

    def test_error_message(self):
        outcome = interpret_response(make_response(403, {"detail": "Invalid API key"}, reason="Forbidden"))

        assert outcome.status == ResponseStatus.FAILED
        assert outcome.error.message == "Forbidden: Invalid API key"
        assert outcome.error.detail == "Invalid API key"
        assert outcome.error.status_code == 403

    def test_server_error(self):
        outcome = interpret_response(make_response(500, None, text="oops", reason="Internal Server Error"))

        assert outcome.status == ResponseStatus.FAILED
        assert outcome.error.message == "Internal Server Error: None"

    def test_non_dict_body_has_no_detail(self):
        outcome = interpret_response(make_response(400, ["bad"], reason="Bad Request"))
        assert outcome.error.detail is None


class TestThrottleDelay:
    """Test retry delay parsing."""

    @pytest.mark.parametrize("detail,expected", [
        ("Request was throttled. Expected available in 3 seconds.", 4),
        ("throttled, try again in 59 seconds", 60),
        ("throttled 12 then 30", 13),
        ("throttled", 1),
    ])
    def test_parse_throttle_delay(self, detail, expected):
        assert parse_throttle_delay(detail) == expected


class TestLegacySuccess:
    """Test legacy body check."""

    def test_one_is_success(self):
        assert is_legacy_success(make_response(200, text="1")) is True

    @pytest.mark.parametrize("body", ["0", "", "1\n", "true"])
    def test_anything_else_is_not(self, body):
        assert is_legacy_success(make_response(200, text=body)) is False
