"""
Test suite for Klaviyo driver.

Tests are organized into:
- test_client.py - Main driver functionality tests
- test_params.py - Payload building and validation tests
- test_encoding.py - Legacy query encoding tests
- test_responses.py - Response classification tests
- test_exceptions.py - Exception handling tests
- test_integration.py - Integration and workflow tests
- conftest.py - Pytest fixtures and configuration

Run tests with:
    pytest klaviyo_driver/tests/
    pytest klaviyo_driver/tests/ -v
    pytest klaviyo_driver/tests/ --cov=klaviyo_driver
"""
