"""Externally completable future."""

import asyncio
from typing import Any, Generic, TypeVar


T = TypeVar("T")

_PENDING: Any = object()


class Deferred(Generic[T]):
    """A future paired with the functions that settle it.

    The underlying asyncio future is created lazily, on first access of
    ``future``, so a deferred can be created and completed from plain
    synchronous code with no running event loop. If the deferred was already
    settled by then, the future is born settled.

    ``complete`` and ``fail`` only take effect once; later calls are ignored.

    Example:
        deferred = Deferred[int]()

        async def waiter():
            return await deferred.future

        task = asyncio.create_task(waiter())
        deferred.complete(42)
        assert await task == 42
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[T] | None = None
        self._value: Any = _PENDING
        self._error: BaseException | None = None

    @property
    def done(self) -> bool:
        """Whether ``complete`` or ``fail`` has been called."""
        return self._value is not _PENDING or self._error is not None

    @property
    def future(self) -> "asyncio.Future[T]":
        """The future settled by this deferred.

        Must be accessed from within a running event loop. A future made
        under an earlier loop is replaced, so a deferred outlives
        ``asyncio.run`` boundaries.
        """
        loop = asyncio.get_running_loop()
        if self._future is None or self._future.get_loop() is not loop:
            self._future = loop.create_future()
            if self._error is not None:
                self._future.set_exception(self._error)
            elif self._value is not _PENDING:
                self._future.set_result(self._value)
        return self._future

    def complete(self, value: T) -> None:
        """Resolve the future with ``value``."""
        if self.done:
            return
        self._value = value
        if self._future is not None and not self._future.done():
            self._future.set_result(value)

    def fail(self, error: BaseException) -> None:
        """Settle the future with ``error``."""
        if self.done:
            return
        self._error = error
        if self._future is not None and not self._future.done():
            self._future.set_exception(error)
