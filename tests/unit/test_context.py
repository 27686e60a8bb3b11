"""
Request Context Unit Tests
"""

import threading
import time

import pytest

from triton_client.client import RequestContext
from triton_client.client.context import bind_context, current_context
from triton_client.exceptions import TransportError


class TestRequestContext:
    """Tests for RequestContext"""

    def test_background(self):
        """Should never expire"""
        ctx = RequestContext.background()

        assert ctx.deadline is None
        assert ctx.remaining() is None
        assert ctx.cancelled is False
        ctx.check()

    def test_with_timeout(self):
        """Should set a deadline in the future"""
        ctx = RequestContext.with_timeout(5)

        assert ctx.deadline is not None
        assert 0 < ctx.remaining() <= 5
        ctx.check()

    @pytest.mark.parametrize("seconds", [0, -1])
    def test_with_timeout_rejects_non_positive(self, seconds: float):
        """Should reject a timeout that is already over"""
        with pytest.raises(ValueError):
            RequestContext.with_timeout(seconds)

    def test_cancel(self):
        """Should raise once cancelled"""
        ctx = RequestContext.with_timeout(5)
        ctx.cancel()

        assert ctx.cancelled is True
        with pytest.raises(TransportError, match="context canceled"):
            ctx.check()

    def test_expired_deadline(self):
        """Should raise once the deadline passed"""
        ctx = RequestContext(deadline=time.monotonic() - 1)

        assert ctx.remaining() < 0
        with pytest.raises(TransportError, match="deadline exceeded"):
            ctx.check()


class TestDoneCallbacks:
    """Tests for callbacks run when a context is done"""

    def test_runs_on_cancel(self):
        """Should run once, on cancel"""
        ctx = RequestContext.background()
        calls = []
        ctx.on_done(lambda: calls.append("done"))

        ctx.cancel()
        ctx.cancel()

        assert calls == ["done"]

    def test_runs_on_deadline(self):
        """Should run when the deadline passes"""
        ctx = RequestContext.with_timeout(0.1)
        fired = threading.Event()
        ctx.on_done(fired.set)

        assert fired.wait(2.0)
        assert ctx.err() == "context deadline exceeded"
        assert ctx.cancelled is False

    def test_runs_immediately_when_done(self):
        """Should run right away on a cancelled context"""
        ctx = RequestContext.background()
        ctx.cancel()
        calls = []

        ctx.on_done(lambda: calls.append("done"))

        assert calls == ["done"]

    def test_unregister(self):
        """Should not run once unregistered"""
        ctx = RequestContext.background()
        calls = []
        release = ctx.on_done(lambda: calls.append("done"))

        release()
        ctx.cancel()

        assert calls == []

    def test_bind_context(self):
        """Should expose the bound context to the current thread only"""
        ctx = RequestContext.background()
        seen = []

        with bind_context(ctx):
            worker = threading.Thread(target=lambda: seen.append(current_context()))
            worker.start()
            worker.join()
            assert current_context() is ctx

        assert current_context() is None
        assert seen == [None]
