"""
Unit tests for timed execution (src/experiment/outcome.py)

Tests covering:
- Sync and async operations are invoked exactly once
- Values and exceptions are captured, never propagated
- Duration covers only the operation itself
"""

import asyncio
from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.experiment.outcome import Outcome, run_timed


class TestOutcome:
    """Tests for the Outcome record."""

    def test_success_outcome(self):
        """Test success outcome carries the value and no failure."""
        outcome = Outcome.success(42, timedelta(milliseconds=5))
        assert outcome.value == 42
        assert outcome.failure is None
        assert outcome.failed is False
        assert outcome.unwrap() == 42

    def test_failure_outcome(self):
        """Test failure outcome carries the exception and no value."""
        error = ValueError("boom")
        outcome = Outcome.from_failure(error, timedelta(milliseconds=5))
        assert outcome.value is None
        assert outcome.failure is error
        assert outcome.failed is True

    def test_unwrap_reraises_same_exception(self):
        """Test unwrap re-raises the captured exception object itself."""
        error = KeyError("missing")
        outcome = Outcome.from_failure(error, timedelta(0))

        with pytest.raises(KeyError) as exc_info:
            outcome.unwrap()
        assert exc_info.value is error

    def test_outcome_is_immutable(self):
        """Test outcomes cannot be mutated after construction."""
        outcome = Outcome.success(1, timedelta(0))
        with pytest.raises(AttributeError):
            outcome.value = 2


class TestRunTimed:
    """Tests for run_timed."""

    @pytest.mark.asyncio
    async def test_sync_operation_value_captured(self):
        """Test a plain function's return value is captured."""
        operation = Mock(return_value="result")

        outcome = await run_timed(operation)

        assert outcome.value == "result"
        assert outcome.failed is False
        operation.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_async_operation_is_awaited(self):
        """Test a coroutine function is awaited, not returned as a coroutine."""
        calls = []

        async def operation():
            calls.append(1)
            await asyncio.sleep(0)
            return 7

        outcome = await run_timed(operation)

        assert outcome.value == 7
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_sync_exception_captured(self):
        """Test exceptions from sync operations are captured."""
        error = RuntimeError("sync failure")

        def operation():
            raise error

        outcome = await run_timed(operation)

        assert outcome.failure is error
        assert outcome.value is None

    @pytest.mark.asyncio
    async def test_async_exception_captured(self):
        """Test exceptions raised after a suspension point are captured."""

        async def operation():
            await asyncio.sleep(0)
            raise ConnectionError("async failure")

        outcome = await run_timed(operation)

        assert isinstance(outcome.failure, ConnectionError)
        assert str(outcome.failure) == "async failure"

    @pytest.mark.asyncio
    async def test_none_result_is_success(self):
        """Test returning None is a successful outcome, not a failure."""
        outcome = await run_timed(lambda: None)

        assert outcome.failed is False
        assert outcome.value is None

    @pytest.mark.asyncio
    async def test_duration_measures_operation(self):
        """Test duration reflects the time spent inside the operation."""

        async def operation():
            await asyncio.sleep(0.03)
            return True

        outcome = await run_timed(operation)

        assert isinstance(outcome.duration, timedelta)
        assert outcome.duration >= timedelta(milliseconds=25)
        assert outcome.duration < timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_duration_recorded_on_failure(self):
        """Test failures still carry the elapsed duration."""

        async def operation():
            await asyncio.sleep(0.02)
            raise ValueError("late failure")

        outcome = await run_timed(operation)

        assert outcome.failed is True
        assert outcome.duration >= timedelta(milliseconds=15)

    @pytest.mark.asyncio
    async def test_cancellation_not_captured(self):
        """Test cancellation propagates instead of becoming an outcome."""

        async def operation():
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await run_timed(operation)
