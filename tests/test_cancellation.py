"""Tests for CancellationSignal."""

import asyncio

import pytest

from rawhttp import CancellationSignal


class TestCancellationSignal:
    """Tests for CancellationSignal."""

    def test_initial_state(self):
        """Test a new signal is not cancelled."""
        signal = CancellationSignal()

        assert signal.cancelled is False
        assert signal.reason is None

    def test_cancel_runs_callbacks_in_order(self):
        """Test callbacks run once, in registration order, with the reason."""
        signal = CancellationSignal()
        calls = []
        signal.add_callback(lambda reason: calls.append(("first", reason)))
        signal.add_callback(lambda reason: calls.append(("second", reason)))

        signal.cancel("stop")

        assert signal.cancelled is True
        assert signal.reason == "stop"
        assert calls == [("first", "stop"), ("second", "stop")]

    def test_cancel_is_idempotent(self):
        """Test repeated cancels keep the first reason and fire once."""
        signal = CancellationSignal()
        calls = []
        signal.add_callback(calls.append)

        signal.cancel("first")
        signal.cancel("second")

        assert signal.reason == "first"
        assert calls == ["first"]

    def test_remove_callback(self):
        """Test removed callbacks are not called."""
        signal = CancellationSignal()
        calls = []
        signal.add_callback(calls.append)
        signal.remove_callback(calls.append)
        signal.remove_callback(calls.append)  # unknown: ignored

        signal.cancel()

        assert calls == []

    def test_callback_added_after_cancel_not_called(self):
        """Test late callbacks are ignored; callers check cancelled."""
        signal = CancellationSignal()
        signal.cancel()
        calls = []

        signal.add_callback(calls.append)

        assert calls == []

    def test_repr(self):
        """Test repr shows state."""
        signal = CancellationSignal()
        assert "active" in repr(signal)
        signal.cancel()
        assert "cancelled" in repr(signal)

    @pytest.mark.asyncio
    async def test_after_cancels_on_timer(self):
        """Test after() fires once the delay passes."""
        signal = CancellationSignal.after(0.01)

        assert signal.cancelled is False
        await asyncio.sleep(0.05)

        assert signal.cancelled is True
        assert "Timed out" in signal.reason

    @pytest.mark.asyncio
    async def test_after_rejects_negative_delay(self):
        """Test after() validates its delay."""
        with pytest.raises(ValueError):
            CancellationSignal.after(-1)

    def test_after_requires_running_loop(self):
        """Test after() needs an event loop."""
        with pytest.raises(RuntimeError):
            CancellationSignal.after(1.0)
