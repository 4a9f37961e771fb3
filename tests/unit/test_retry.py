"""
Unit tests for the retry utilities module.
"""

from unittest.mock import MagicMock, patch

import pytest
from web3.exceptions import Web3Exception

from liquidip_toolkit.shared.exceptions import (
    NonRetryableException,
    RetryableException,
    YieldVenueError,
)
from liquidip_toolkit.shared.retry import (
    DEFAULT_RETRYABLE_EXCEPTIONS,
    RPC_RETRY_CONFIG,
    YIELD_RETRY_CONFIG,
    RetryConfig,
    retry_sync,
    retry_sync_operation,
)


class TestRetrySyncDecorator:
    """Tests for the retry_sync synchronous decorator."""

    def test_succeeds_first_try(self):
        """Test function that succeeds on first attempt."""
        mock_fn = MagicMock(return_value="success")

        @retry_sync(max_attempts=3)
        def test_func():
            return mock_fn()

        result = test_func()
        assert result == "success"
        assert mock_fn.call_count == 1

    def test_succeeds_after_retry(self):
        """Test function that fails twice then succeeds."""
        mock_fn = MagicMock(
            side_effect=[RetryableException("fail"), ConnectionError("fail"), "success"]
        )

        @retry_sync(max_attempts=3, base_delay=0.01)
        def test_func():
            return mock_fn()

        result = test_func()
        assert result == "success"
        assert mock_fn.call_count == 3

    def test_fails_after_max_attempts(self):
        """Test function that always fails exhausts retries."""
        mock_fn = MagicMock(side_effect=Web3Exception("always fail"))

        @retry_sync(max_attempts=3, base_delay=0.01)
        def test_func():
            return mock_fn()

        with pytest.raises(Web3Exception, match="always fail"):
            test_func()

        assert mock_fn.call_count == 3

    def test_non_retryable_propagates_immediately(self):
        """NonRetryableException is never retried."""
        mock_fn = MagicMock(side_effect=NonRetryableException("bad input"))

        @retry_sync(max_attempts=3, base_delay=0.01)
        def test_func():
            return mock_fn()

        with pytest.raises(NonRetryableException):
            test_func()

        assert mock_fn.call_count == 1

    def test_exponential_backoff(self):
        """Test that exponential backoff increases delay."""
        mock_fn = MagicMock(
            side_effect=[RetryableException("fail"), RetryableException("fail"), "ok"]
        )

        @retry_sync(max_attempts=3, base_delay=1.0, exponential=True)
        def test_func():
            return mock_fn()

        with patch("liquidip_toolkit.shared.retry.time.sleep") as mock_sleep:
            assert test_func() == "ok"

        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_max_delay_cap(self):
        """Test that delay is capped at max_delay."""
        mock_fn = MagicMock(side_effect=[RetryableException("fail")] * 4 + ["ok"])

        @retry_sync(max_attempts=5, base_delay=10.0, max_delay=15.0)
        def test_func():
            return mock_fn()

        with patch("liquidip_toolkit.shared.retry.time.sleep") as mock_sleep:
            assert test_func() == "ok"

        assert all(c.args[0] <= 15.0 for c in mock_sleep.call_args_list)

    def test_on_retry_callback(self):
        """Test that on_retry callback is called."""
        mock_fn = MagicMock(
            side_effect=[RetryableException("fail1"), RetryableException("fail2"), "ok"]
        )
        retry_calls = []

        def on_retry(exc, attempt):
            retry_calls.append((str(exc), attempt))

        @retry_sync(max_attempts=3, base_delay=0.01, on_retry=on_retry)
        def test_func():
            return mock_fn()

        assert test_func() == "ok"
        assert retry_calls == [("fail1", 1), ("fail2", 2)]


class TestRetrySyncOperation:
    """Tests for the retry_sync_operation function."""

    def test_basic_operation(self):
        """Test basic sync operation retry."""
        call_count = [0]

        def failing_then_success():
            call_count[0] += 1
            if call_count[0] < 3:
                raise TimeoutError("fail")
            return "success"

        result = retry_sync_operation(
            failing_then_success,
            max_attempts=3,
            base_delay=0.01,
        )
        assert result == "success"
        assert call_count[0] == 3

    def test_with_args(self):
        """Test sync operation with arguments."""
        mock_fn = MagicMock(return_value="result")

        result = retry_sync_operation(
            mock_fn,
            "arg1",
            "arg2",
            max_attempts=3,
            kwarg1="value1",
        )

        assert result == "result"
        mock_fn.assert_called_once_with("arg1", "arg2", kwarg1="value1")

    def test_specific_exceptions(self):
        """Test that only specified exceptions are retried."""
        mock_fn = MagicMock(side_effect=ValueError("not retryable"))

        with pytest.raises(ValueError, match="not retryable"):
            retry_sync_operation(
                mock_fn,
                max_attempts=3,
                base_delay=0.01,
                retryable_exceptions=(TypeError,),
            )

        assert mock_fn.call_count == 1


class TestRetryConfig:
    """Tests for RetryConfig class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0
        assert config.exponential is True
        assert config.retryable_exceptions == DEFAULT_RETRYABLE_EXCEPTIONS

    def test_custom_config(self):
        """Test custom configuration values."""
        config = RetryConfig(
            max_attempts=5,
            base_delay=0.5,
            max_delay=10.0,
            exponential=False,
            retryable_exceptions=(ValueError, TypeError),
        )
        assert config.max_attempts == 5
        assert config.exponential is False
        assert config.retryable_exceptions == (ValueError, TypeError)

    def test_sync_decorator_from_config(self):
        """Test creating sync decorator from config."""
        config = RetryConfig(max_attempts=2, base_delay=0.01)
        mock_fn = MagicMock(side_effect=[YieldVenueError("fail"), "success"])

        @config.sync_decorator()
        def test_func():
            return mock_fn()

        assert test_func() == "success"
        assert mock_fn.call_count == 2

    def test_call(self):
        """RetryConfig.call forwards arguments and retries."""
        config = RetryConfig(max_attempts=2, base_delay=0)
        mock_fn = MagicMock(side_effect=[YieldVenueError("fail"), 42])

        assert config.call(mock_fn, 7, asset="0xabc") == 42
        mock_fn.assert_called_with(7, asset="0xabc")


class TestPreConfiguredConfigs:
    """Tests for pre-configured retry configs."""

    def test_rpc_retry_config(self):
        assert RPC_RETRY_CONFIG.max_attempts == 3
        assert RPC_RETRY_CONFIG.base_delay == 1.0
        assert RPC_RETRY_CONFIG.max_delay == 10.0

    def test_yield_retry_config(self):
        assert YIELD_RETRY_CONFIG.max_attempts == 3
        assert YIELD_RETRY_CONFIG.base_delay == 2.0
        assert YIELD_RETRY_CONFIG.max_delay == 30.0
