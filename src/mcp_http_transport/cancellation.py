"""Cancellation scopes and idle timers shared by the unary and streaming paths.

A transport tracks a single :class:`CancellationScope` at a time. Network
awaits are wrapped with :meth:`CancellationScope.guard`, so cancelling the
scope (from ``close()`` or an expired :class:`IdleTimer`) makes the in-flight
await fail with :class:`~mcp_http_transport.errors.AbortedError`.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from .errors import AbortedError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CancellationScope:
    """Handle for one cancellable operation."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Trigger the scope. Only the first reason is kept."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the scope fires first.

        Raises:
            AbortedError: If the scope is, or becomes, cancelled before
                ``awaitable`` completes. The pending work is cancelled.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise AbortedError(self._reason or "cancelled")

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # Let the work unwind before the caller's cleanup touches its resources
            work.cancel()
            await asyncio.wait({work})
            raise
        finally:
            waiter.cancel()

        if work.done():
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise AbortedError(self._reason or "cancelled")


class IdleTimer:
    """Renewable deadline that cancels a scope after ``timeout`` seconds of silence."""

    def __init__(self, scope: CancellationScope, timeout: float) -> None:
        self._scope = scope
        self._timeout = timeout
        self._handle: asyncio.TimerHandle | None = None

    def arm(self) -> None:
        """Start (or restart) the countdown."""
        self.clear()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout, self._expire)

    def clear(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self) -> None:
        self._handle = None
        logger.warning("Idle timeout of %.3fs exceeded, aborting operation", self._timeout)
        self._scope.cancel(f"idle timeout of {self._timeout}s exceeded")


class CancellationController:
    """Tracks the single live cancellation scope of a transport instance.

    Starting a new scope replaces the tracked one without cancelling it, so
    ``cancel_current()`` only reaches the most recent operation. Callers are
    expected to run one cancellable operation per instance at a time.
    """

    def __init__(self) -> None:
        self._current: CancellationScope | None = None

    @property
    def current(self) -> CancellationScope | None:
        return self._current

    def begin(self) -> CancellationScope:
        if self._current is not None and not self._current.cancelled:
            logger.debug("Replacing live cancellation scope without cancelling it")
        scope = CancellationScope()
        self._current = scope
        return scope

    def release(self, scope: CancellationScope) -> None:
        if self._current is scope:
            self._current = None

    def cancel_current(self, reason: str) -> bool:
        """Cancel and forget the tracked scope. Returns False if none was tracked."""
        scope = self._current
        if scope is None:
            return False
        self._current = None
        scope.cancel(reason)
        return True
