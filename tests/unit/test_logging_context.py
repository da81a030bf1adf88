"""Tests for structured logging context and token service log events."""

import logging
from datetime import timedelta

import pytest
import structlog
from structlog.testing import CapturingLogger

from src.qrviewer.core.exceptions import NotFoundError
from src.qrviewer.core.logging import bind_request_context, clear_request_context, setup_logging
from src.qrviewer.services import TokenService
from src.qrviewer.storage import StorageEngine
from tests.helpers import FakeClock, create_project_with_version

pytestmark = pytest.mark.unit


@pytest.fixture
def capturing_logger():
    """Create a capturing logger for tests."""
    cap_logger = CapturingLogger()

    # Save original configuration to restore later
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_request_context()
    yield cap_logger
    clear_request_context()
    structlog.configure(**old_config)


def test_bind_request_context(capturing_logger):
    bind_request_context("test-request-123")
    structlog.get_logger().info("test message")

    entries = capturing_logger.calls
    assert len(entries) == 1
    assert entries[0].kwargs["request_id"] == "test-request-123"


def test_bind_request_context_with_none(capturing_logger):
    bind_request_context(None)
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs


def test_clear_request_context(capturing_logger):
    bind_request_context("test-request-123")
    clear_request_context()
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs


def test_issue_log_never_contains_token(
    capturing_logger, storage: StorageEngine, clock: FakeClock
):
    create_project_with_version(storage)
    service = TokenService(storage, clock=clock)

    token = service.issue("sample-office-building", "GID", expiry_days=7)

    issued = [c for c in capturing_logger.calls if c.kwargs.get("event") == "Viewer token issued"]
    assert len(issued) == 1
    assert issued[0].kwargs["project_slug"] == "sample-office-building"
    assert issued[0].kwargs["model_version"] == "v1.0"
    assert issued[0].kwargs["expires_at"] == (clock() + timedelta(days=7)).isoformat()
    for call in capturing_logger.calls:
        assert token not in repr(call)


def test_auto_provisioning_is_logged(capturing_logger, service: TokenService):
    with pytest.raises(NotFoundError):
        service.issue("fresh-site", "GID")

    messages = [c.kwargs.get("event") for c in capturing_logger.calls]
    assert "Project auto-provisioned on first token request" in messages


@pytest.mark.parametrize("debug", [True, False])
def test_setup_logging_configures_structlog(debug: bool):
    old_config = structlog.get_config()
    try:
        setup_logging(debug=debug)
        renderer = structlog.get_config()["processors"][-1]
        expected = structlog.dev.ConsoleRenderer if debug else structlog.processors.JSONRenderer
        assert isinstance(renderer, expected)
    finally:
        structlog.configure(**old_config)


def test_setup_logging_quiets_chatty_libraries():
    old_config = structlog.get_config()
    try:
        setup_logging(debug=False)
        for name in ("sqlalchemy.engine", "filelock", "uvicorn.access"):
            assert logging.getLogger(name).level == logging.WARNING
    finally:
        structlog.configure(**old_config)
