"""Tests for connection retry utilities."""
import socket

import pytest

from netapp_filer.config.schema import FilerConfig
from netapp_filer.utils.connection import (
    PERMANENT_EXCEPTIONS,
    RETRYABLE_EXCEPTIONS,
    connect_with_retry,
    with_retry,
)


class TestWithRetry:
    """Tests for retry decorator."""

    def test_success_no_retry(self):
        """Successful function doesn't retry."""
        call_count = 0

        @with_retry(max_attempts=3)
        def succeeding_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert succeeding_func() == "success"
        assert call_count == 1

    def test_retry_then_success(self):
        """Function retries on failure then succeeds."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def failing_then_succeeding():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ConnectionRefusedError("Connection refused")
            return "success"

        assert failing_then_succeeding() == "success"
        assert call_count == 2

    def test_max_retries_exceeded(self):
        """Function raises the last error after max retries."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.1)
        def always_failing():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("Always times out")

        with pytest.raises(TimeoutError):
            always_failing()
        assert call_count == 3

    def test_non_retryable_exception(self):
        """Non-retryable exceptions are not retried."""
        call_count = 0

        @with_retry(max_attempts=3, exceptions=(ConnectionRefusedError,))
        def raising_value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raising_value_error()
        assert call_count == 1


class TestRetryableExceptions:
    """Tests for retryable exceptions list."""

    @pytest.mark.parametrize(
        "exc",
        [ConnectionRefusedError, ConnectionResetError, TimeoutError, OSError, EOFError],
    )
    def test_network_errors_are_retryable(self, exc):
        """Network level errors are retryable."""
        assert exc in RETRYABLE_EXCEPTIONS

    def test_value_error_not_retryable(self):
        """Programming errors are not retried."""
        assert ValueError not in RETRYABLE_EXCEPTIONS

    def test_resolution_failure_not_retryable(self):
        """An unknown host is an OSError that another attempt will not fix."""
        assert issubclass(socket.gaierror, OSError)
        assert socket.gaierror in PERMANENT_EXCEPTIONS


class TestConnectWithRetry:
    """Tests for the per-filer retry policy."""

    def test_attempts_follow_config(self):
        """connect_retries bounds the number of attempts."""
        config = FilerConfig(hostname="filer1", connect_retries=2, retry_delay=0)
        calls = []

        def connect():
            calls.append(1)
            raise ConnectionRefusedError("refused")

        with pytest.raises(ConnectionRefusedError):
            connect_with_retry(config, connect)
        assert len(calls) == 2

    def test_permanent_errors_raise_at_once(self):
        """Name resolution failures are not retried."""
        config = FilerConfig(hostname="filer1", connect_retries=3, retry_delay=0)
        calls = []

        def connect():
            calls.append(1)
            raise socket.gaierror("Name or service not known")

        with pytest.raises(socket.gaierror):
            connect_with_retry(config, connect)
        assert len(calls) == 1

    def test_returns_connection(self):
        """The connect result is passed through."""
        config = FilerConfig(hostname="filer1", retry_delay=0)
        assert connect_with_retry(config, lambda: "session") == "session"
