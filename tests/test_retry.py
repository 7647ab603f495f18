"""Tests for retry with backoff."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pytest_mock import MockerFixture

from vmconverge.core.exceptions import AuthenticationError, ConnectionFailedError
from vmconverge.utils.retry import retry_with_backoff


class TestRetryWithBackoff:
    """Tests for the retry decorator."""

    @patch("vmconverge.utils.retry.time.sleep")
    def test_succeeds_after_failures(self, mock_sleep: MagicMock) -> None:
        """Test that a transient failure is retried."""
        func = MagicMock(side_effect=[ValueError("boom"), "ok"])
        func.__name__ = "flaky"

        wrapped = retry_with_backoff(max_attempts=3, base_delay=1.0)(func)

        assert wrapped() == "ok"
        mock_sleep.assert_called_once_with(1.0)

    @patch("vmconverge.utils.retry.time.sleep")
    def test_raises_after_max_attempts(self, mock_sleep: MagicMock) -> None:
        """Test that the last exception propagates."""
        func = MagicMock(side_effect=ValueError("boom"))
        func.__name__ = "broken"

        wrapped = retry_with_backoff(max_attempts=3, base_delay=1.0)(func)

        with pytest.raises(ValueError, match="boom"):
            wrapped()
        assert func.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_other_exceptions_not_retried(self) -> None:
        """Test that only the listed exception types are retried."""
        func = MagicMock(side_effect=KeyError("nope"))
        func.__name__ = "strict"

        wrapped = retry_with_backoff(exceptions=(ValueError,))(func)

        with pytest.raises(KeyError):
            wrapped()
        assert func.call_count == 1

    def test_give_up_on_subclass(self, mocker: MockerFixture) -> None:
        """Test that listed subclasses propagate without another attempt."""
        mock_sleep = mocker.patch("vmconverge.utils.retry.time.sleep")
        func = MagicMock(side_effect=AuthenticationError("vc", "admin"))
        func.__name__ = "login"

        wrapped = retry_with_backoff(
            exceptions=(ConnectionFailedError,),
            give_up_on=(AuthenticationError,),
        )(func)

        with pytest.raises(AuthenticationError):
            wrapped()
        assert func.call_count == 1
        mock_sleep.assert_not_called()

    def test_delay_is_capped(self, mocker: MockerFixture) -> None:
        """Test that the doubling delay stops at max_delay."""
        mock_sleep = mocker.patch("vmconverge.utils.retry.time.sleep")
        func = MagicMock(side_effect=ConnectionFailedError("vc", "refused"))
        func.__name__ = "connect"

        wrapped = retry_with_backoff(max_attempts=4, base_delay=2.0, max_delay=5.0)(func)

        with pytest.raises(ConnectionFailedError):
            wrapped()
        assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 4.0, 5.0]
