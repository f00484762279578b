"""Tests for structured logging configuration."""

import logging

from starlette.requests import Request

from agrihub.core.logging import (
    RequestContextFilter,
    client_ip,
    client_ip_ctx,
    request_id_ctx,
    setup_logging,
    user_agent_ctx,
)


def _request(headers=None, client=("10.1.2.3", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_request_context_filter_injects_fields():
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="hello",
        args=(),
        exc_info=None,
    )

    token_id = request_id_ctx.set("req-123")
    token_agent = user_agent_ctx.set("pytest-agent")
    token_ip = client_ip_ctx.set("203.0.113.9")
    try:
        context_filter = RequestContextFilter()
        assert context_filter.filter(record) is True
        assert record.request_id == "req-123"
        assert record.user_agent == "pytest-agent"
        assert record.client_ip == "203.0.113.9"
    finally:
        request_id_ctx.reset(token_id)
        user_agent_ctx.reset(token_agent)
        client_ip_ctx.reset(token_ip)


def test_client_ip_prefers_first_forwarded_hop():
    request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    assert client_ip(request) == "203.0.113.9"


def test_client_ip_falls_back_to_peer_then_unknown():
    assert client_ip(_request()) == "10.1.2.3"
    assert client_ip(_request(client=None)) == "unknown"


def test_setup_logging_attaches_json_handler():
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    try:
        setup_logging()
        assert root_logger.handlers, "expected a handler after setup"
        handler = root_logger.handlers[0]
        filters = handler.filters
        assert any(isinstance(filter_, RequestContextFilter) for filter_ in filters)
        # Ensure formatter renders request fields even when unset.
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname=__file__,
            lineno=42,
            msg="message",
            args=(),
            exc_info=None,
        )
        for filter_ in filters:
            filter_.filter(record)
        formatted = handler.format(record)
        assert "request_id" in formatted
        assert "user_agent" in formatted
        assert "client_ip" in formatted
    finally:
        root_logger.handlers = original_handlers
        root_logger.setLevel(original_level)
