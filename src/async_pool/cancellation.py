"""Cooperative cancellation signals.

An ``AbortController`` owns an ``AbortSignal``. Code that may suspend for a
long time (waiting for a pooled resource, for instance) is handed the signal
and checks it at its suspension point; whoever owns the controller calls
``abort()`` to revoke those waits. Work that is already running is never
interrupted.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from async_pool.deferred import Deferred
from async_pool.errors import PoolError


logger = logging.getLogger(__name__)


class AbortError(PoolError):
    """Raised when a wait is revoked through an ``AbortSignal``.

    Non-exception abort reasons are carried in ``reason``.
    """

    def __init__(self, reason: Any = "user abort"):
        self.reason = reason
        super().__init__(reason)


class AbortSignal:
    """Read side of an ``AbortController``.

    A signal transitions from not-aborted to aborted exactly once.
    """

    def __init__(self) -> None:
        self._deferred: Deferred[Any] = Deferred()
        self._reason: Any = None
        self._callbacks: list[Callable[[Any], object]] = []

    @property
    def aborted(self) -> bool:
        return self._deferred.done

    @property
    def reason(self) -> Any:
        """The abort reason, or None while not aborted."""
        return self._reason

    @property
    def future(self) -> "asyncio.Future[Any]":
        """Future that resolves to the reason once aborted."""
        return self._deferred.future

    async def wait(self) -> Any:
        """Suspend until the signal is aborted and return the reason."""
        return await self._deferred.future

    def add_callback(self, callback: Callable[[Any], object]) -> None:
        """Call ``callback(reason)`` on abort, or right away if already aborted."""
        if self.aborted:
            callback(self._reason)
            return
        self._callbacks.append(callback)

    def error(self) -> BaseException:
        """The exception a revoked wait should raise."""
        if isinstance(self._reason, BaseException):
            return self._reason
        return AbortError(self._reason)

    def raise_if_aborted(self) -> None:
        if self.aborted:
            raise self.error().with_traceback(None)

    def _abort(self, reason: Any) -> None:
        if self.aborted:
            return
        self._reason = reason
        self._deferred.complete(reason)
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)


class AbortController:
    """Owns an ``AbortSignal`` and the right to abort it.

    Example:
        controller = AbortController()
        task = asyncio.create_task(pool.acquire(signal=controller.signal))
        controller.abort(TimeoutError("gave up"))
        await task  # raises TimeoutError
    """

    def __init__(self) -> None:
        self._signal = AbortSignal()

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    def abort(self, reason: Any = None) -> None:
        """Abort the signal. Subsequent calls have no effect."""
        if reason is None:
            reason = AbortError()
        logger.debug("Aborting signal: %r", reason)
        self._signal._abort(reason)
