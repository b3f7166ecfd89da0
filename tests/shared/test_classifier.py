"""Tests for the failure classifier and the backoff calculation."""

import asyncio
import random

import httpx
import pytest
from shared.resilience.classifier import RATE_LIMIT_FLOOR, backoff_delay, classify, status_code_of
from shared.resilience.errors import ErrorKind, ExternalCallError


class StatusError(Exception):
    def __init__(self, status_code, message="request failed"):
        super().__init__(message)
        self.status_code = status_code


def _http_status_error(status):
    request = httpx.Request("GET", "https://panel.example.test/api/application/users")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("bad status", request=request, response=response)


class TestClassifyByType:
    def test_asyncio_timeout(self):
        assert classify(asyncio.TimeoutError()) is ErrorKind.TIMEOUT

    def test_httpx_timeout(self):
        assert classify(httpx.ReadTimeout("slow")) is ErrorKind.TIMEOUT

    def test_connection_error(self):
        assert classify(ConnectionRefusedError()) is ErrorKind.NETWORK

    def test_httpx_transport_error(self):
        assert classify(httpx.ConnectError("boom")) is ErrorKind.NETWORK

    def test_external_call_error_keeps_its_reason(self):
        error = ExternalCallError("send", ErrorKind.AUTH, 1)
        assert classify(error) is ErrorKind.AUTH


class TestClassifyByStatus:
    @pytest.mark.parametrize(
        "status, kind",
        [
            (408, ErrorKind.TIMEOUT),
            (401, ErrorKind.AUTH),
            (403, ErrorKind.AUTH),
            (429, ErrorKind.RATE_LIMIT),
            (500, ErrorKind.UNKNOWN),
            (422, ErrorKind.UNKNOWN),
        ],
    )
    def test_status_attribute(self, status, kind):
        assert classify(StatusError(status)) is kind

    def test_httpx_status_error(self):
        assert classify(_http_status_error(403)) is ErrorKind.AUTH

    def test_status_code_of(self):
        assert status_code_of(_http_status_error(429)) == 429
        assert status_code_of(StatusError(502)) == 502
        assert status_code_of(ValueError("x")) is None


class TestClassifyByMessage:
    @pytest.mark.parametrize(
        "message, kind",
        [
            ("Request timed out", ErrorKind.TIMEOUT),
            ("ECONNRESET while reading", ErrorKind.NETWORK),
            ("Connection closed", ErrorKind.NETWORK),
            ("Invalid session", ErrorKind.AUTH),
            ("Too Many Requests", ErrorKind.RATE_LIMIT),
            ("device logged out", ErrorKind.CRITICAL),
            ("Number banned", ErrorKind.CRITICAL),
            ("something odd", ErrorKind.UNKNOWN),
        ],
    )
    def test_markers(self, message, kind):
        assert classify(RuntimeError(message)) is kind


class TestRetryability:
    @pytest.mark.parametrize("kind", [ErrorKind.AUTH, ErrorKind.CRITICAL])
    def test_not_retryable(self, kind):
        assert kind.retryable is False

    @pytest.mark.parametrize(
        "kind", [ErrorKind.TIMEOUT, ErrorKind.NETWORK, ErrorKind.RATE_LIMIT, ErrorKind.UNKNOWN]
    )
    def test_retryable(self, kind):
        assert kind.retryable is True


class TestBackoff:
    def test_grows_exponentially_without_jitter(self):
        delays = [
            backoff_delay(ErrorKind.NETWORK, attempt, base_delay=1.0, max_delay=100.0, factor=2.0, jitter=0.0)
            for attempt in (1, 2, 3, 4)
        ]
        assert delays == [1.0, 2.0, 4.0, 8.0]

    def test_capped_at_max_delay(self):
        assert backoff_delay(ErrorKind.UNKNOWN, 10, base_delay=5.0, max_delay=60.0, factor=2.0) == 60.0

    def test_jitter_is_bounded(self):
        rng = random.Random(3)
        for _ in range(20):
            delay = backoff_delay(ErrorKind.TIMEOUT, 1, base_delay=1.0, max_delay=15.0, factor=2.0, rng=rng)
            assert 1.0 <= delay <= 2.0

    def test_rate_limit_floor(self):
        delay = backoff_delay(ErrorKind.RATE_LIMIT, 1, base_delay=1.0, max_delay=15.0, factor=2.0, jitter=0.0)
        assert delay == RATE_LIMIT_FLOOR == 60.0
