"""Tests for rate limiting configuration (src/qrviewer/core/rate_limit.py)."""

from unittest.mock import MagicMock, patch

import pytest
from starlette.requests import Request

from src.qrviewer.core.rate_limit import create_limiter, get_rate_limit_key, token_create_limit

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_request() -> MagicMock:
    """Create a mock Starlette request."""
    request = MagicMock(spec=Request)
    request.headers = {}
    request.client = MagicMock()
    request.client.host = "192.168.1.100"
    request.url.path = "/api/tokens"
    return request


class TestGetRateLimitKey:
    def test_returns_client_ip(self, mock_request: MagicMock) -> None:
        with patch("src.qrviewer.core.rate_limit.get_remote_address", return_value="192.168.1.100"):
            assert get_rate_limit_key(mock_request) == "192.168.1.100"

    def test_ignores_request_headers(self, mock_request: MagicMock) -> None:
        """Rotating headers must not create new buckets."""
        mock_request.headers = {"X-Forwarded-For": "10.0.0.1", "X-Project": "other"}

        with patch("src.qrviewer.core.rate_limit.get_remote_address", return_value="192.168.1.100"):
            assert get_rate_limit_key(mock_request) == "192.168.1.100"

    def test_falls_back_when_address_unknown(self, mock_request: MagicMock) -> None:
        with patch("src.qrviewer.core.rate_limit.get_remote_address", return_value=None):
            assert get_rate_limit_key(mock_request) == "unknown"


class TestCreateLimiter:
    def test_disabled_in_testing(self) -> None:
        settings = MagicMock(app_env="testing")
        with patch("src.qrviewer.core.rate_limit.get_settings", return_value=settings):
            assert create_limiter().enabled is False

    def test_enabled_outside_testing(self) -> None:
        settings = MagicMock(app_env="production")
        with patch("src.qrviewer.core.rate_limit.get_settings", return_value=settings):
            assert create_limiter().enabled is True


def test_token_create_limit_reads_settings() -> None:
    settings = MagicMock(token_create_rate_limit="5/second")
    with patch("src.qrviewer.core.rate_limit.get_settings", return_value=settings):
        assert token_create_limit() == "5/second"
