"""Tests for the structured logging helpers."""

from __future__ import annotations

import json
import logging

import anyio
import pytest

from easybuy.logging_config import _sanitize, log_call, log_http_request, logger
from easybuy.schemas.auth import Credentials


class TestSanitize:
    def test_drops_sensitive_keys(self) -> None:
        clean = _sanitize({"idToken": "x", "password": "y", "email": "a@b.c", "nested": [{"Authorization": "z"}]})
        assert clean == {"email": "a@b.c", "nested": [{}]}

    def test_models_and_bytes(self) -> None:
        assert _sanitize(Credentials(email="a@b.c", password="pw")) == {"email": "a@b.c"}
        assert _sanitize(b"\xff\xd8\xff") == "<binary 3 bytes>"


class TestLogCall:
    def test_async_function_logs_result(self, caplog: pytest.LogCaptureFixture) -> None:
        @log_call
        async def double(value: int) -> int:
            return value * 2

        logger.setLevel(logging.DEBUG)
        try:
            with caplog.at_level(logging.DEBUG, logger="easybuy"):
                assert anyio.run(double, 4) == 8
        finally:
            logger.setLevel(logging.INFO)
        events = [json.loads(r.getMessage()) for r in caplog.records]
        assert [e["event"] for e in events] == ["call_start", "call_end"]
        assert events[1]["result"] == 8


def test_http_request_strips_authorization(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="easybuy"):
        log_http_request("GET", "https://api.test/me", headers={"Authorization": "Bearer t", "Accept": "*/*"})
    record = json.loads(caplog.records[-1].getMessage())
    assert record["headers"] == {"Accept": "*/*"}
