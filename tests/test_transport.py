"""Tests for retry and timeout helpers."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from kogrammar.exceptions import BackendRequestFailed, BackendUnreachable, MalformedBackendResponse
from kogrammar.services.transport import RetryPolicy, describe, is_retryable, with_retry, with_timeout


class TestIsRetryable:
    def test_unreachable_is_retryable(self):
        assert is_retryable(BackendUnreachable("down"))

    @pytest.mark.parametrize("status, expected", [(429, True), (500, True), (503, True), (400, False), (401, False)])
    def test_status_codes(self, status, expected):
        assert is_retryable(BackendRequestFailed(status)) is expected

    def test_other_errors_not_retried(self):
        assert not is_retryable(MalformedBackendResponse("bad"))
        assert not is_retryable(ValueError("bad"))


@pytest.mark.asyncio
class TestWithRetry:
    """Tests for with_retry."""

    async def test_returns_first_success(self, fast_retry):
        operation = AsyncMock(return_value="ok")
        assert await with_retry(operation, "op", fast_retry) == "ok"
        operation.assert_awaited_once()

    async def test_retries_unreachable(self, fast_retry):
        operation = AsyncMock(side_effect=[BackendUnreachable("down"), "ok"])
        assert await with_retry(operation, "op", fast_retry) == "ok"
        assert operation.await_count == 2

    async def test_gives_up_after_max_retries(self, fast_retry):
        operation = AsyncMock(side_effect=BackendRequestFailed(503, "busy"))
        with pytest.raises(BackendRequestFailed) as exc_info:
            await with_retry(operation, "op", fast_retry)
        assert exc_info.value.status_code == 503
        assert operation.await_count == 3

    async def test_client_error_not_retried(self, fast_retry):
        operation = AsyncMock(side_effect=BackendRequestFailed(400, "bad request"))
        with pytest.raises(BackendRequestFailed):
            await with_retry(operation, "op", fast_retry)
        operation.assert_awaited_once()

    async def test_zero_retries(self):
        operation = AsyncMock(side_effect=BackendUnreachable("down"))
        with pytest.raises(BackendUnreachable):
            await with_retry(operation, "op", RetryPolicy(max_retries=0, base_delay=0))
        operation.assert_awaited_once()


@pytest.mark.asyncio
class TestWithTimeout:
    async def test_returns_result(self):
        async def quick():
            return 42

        assert await with_timeout(quick(), 1, "slow") == 42

    async def test_timeout_becomes_unreachable(self):
        with pytest.raises(BackendUnreachable, match="too slow"):
            await with_timeout(asyncio.sleep(1), 0.01, "too slow")


class TestDescribe:
    def test_short_value_unchanged(self):
        assert describe("abc") == "abc"

    def test_long_value_truncated(self):
        assert describe("가" * 60) == "가" * 50 + "..."
