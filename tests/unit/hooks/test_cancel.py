"""Tests for the cancellation token."""

import threading

from agentrules.hooks import CancellationToken


class TestCancellationToken:
    def test_starts_uncancelled(self) -> None:
        token = CancellationToken()

        assert token.cancelled is False
        assert token.grace_ms is None

    def test_cancel_is_sticky(self) -> None:
        token = CancellationToken()

        token.cancel(grace_ms=10)
        token.cancel(grace_ms=99)

        assert token.cancelled is True
        assert token.grace_ms == 10

    def test_callbacks_run_once(self) -> None:
        token = CancellationToken()
        seen: list[CancellationToken] = []
        token.add_callback(seen.append)

        token.cancel()
        token.cancel()

        assert seen == [token]

    def test_callback_added_after_cancel_runs_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        seen: list[CancellationToken] = []

        token.add_callback(seen.append)

        assert seen == [token]

    def test_wait_returns_false_on_timeout(self) -> None:
        assert CancellationToken().wait(0.01) is False

    def test_wait_wakes_on_cancel_from_other_thread(self) -> None:
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()

        try:
            assert token.wait(5.0) is True
        finally:
            timer.cancel()


class TestAny:
    def test_cancelled_when_any_source_is(self) -> None:
        first = CancellationToken()
        second = CancellationToken()
        combined = CancellationToken.any(first, second)

        second.cancel(grace_ms=250)

        assert combined.cancelled is True
        assert combined.grace_ms == 250
        assert first.cancelled is False

    def test_already_cancelled_source(self) -> None:
        source = CancellationToken()
        source.cancel()

        assert CancellationToken.any(source).cancelled is True

    def test_ignores_none(self) -> None:
        combined = CancellationToken.any(None, None)

        assert combined.cancelled is False

    def test_cancelling_combined_leaves_sources_alone(self) -> None:
        source = CancellationToken()
        combined = CancellationToken.any(source)

        combined.cancel()

        assert source.cancelled is False

    def test_detach_unregisters_from_sources(self) -> None:
        source = CancellationToken()
        combined = CancellationToken.any(source)

        combined.detach()
        source.cancel()

        assert source._callbacks == []
        assert combined.cancelled is False

    def test_detach_twice_is_harmless(self) -> None:
        source = CancellationToken()
        combined = CancellationToken.any(source)

        combined.detach()
        combined.detach()

        assert source._callbacks == []


class TestRemoveCallback:
    def test_removes_registered_callback(self) -> None:
        token = CancellationToken()
        seen: list[CancellationToken] = []
        token.add_callback(seen.append)

        assert token.remove_callback(seen.append) is True
        token.cancel()

        assert seen == []

    def test_returns_false_for_unknown_callback(self) -> None:
        token = CancellationToken()

        assert token.remove_callback(print) is False
