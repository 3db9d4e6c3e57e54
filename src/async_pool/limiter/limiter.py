"""Limiter serializing work against pooled resources."""

import asyncio
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from async_pool.cancellation import AbortController, AbortError
from async_pool.pool.pool import Pool


T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Limiter(Generic[T]):
    """Run functions against resources acquired from a pool.

    Each call waits for a resource, runs the function with that resource as
    its first argument and releases the resource afterwards, so no more
    functions run at once than the pool can supply resources.

    ``min_duration`` throttles how often a resource is reused: when a
    function finishes early its result is returned right away, but the
    resource stays in use until ``min_duration`` seconds have passed since
    the function started. Failures are raised unchanged and release the
    resource immediately.

    ``abort()`` revokes every call still waiting for a resource. Calls that
    already hold one run to completion.

    Args:
        pool: The pool resources are acquired from
        min_duration: Minimum seconds a resource stays busy per call (>= 0)
        abort_reason: Default reason used by ``abort()``. Exceptions are
            raised as-is, other values are wrapped in ``AbortError``.
            Defaults to ``AbortError("user abort")``.

    Example:
        pool = Pool.from_items([client_a, client_b])
        limiter = pool.limiter(min_duration=0.5)

        async def fetch(client, url):
            return await client.get(url)

        pages = await asyncio.gather(*(limiter(fetch, url) for url in urls))

        # Or as a decorator
        @limiter.wrap
        async def fetch(client, url):
            return await client.get(url)
    """

    def __init__(
        self,
        pool: Pool[T],
        min_duration: float = 0.0,
        abort_reason: Any = None,
    ):
        if min_duration < 0:
            raise ValueError(f"min_duration must be >= 0, got {min_duration}")

        self._pool = pool
        self._min_duration = min_duration
        self._abort_reason = abort_reason
        self._controller = AbortController()
        self._pending = 0

    @property
    def pool(self) -> Pool[T]:
        return self._pool

    @property
    def min_duration(self) -> float:
        return self._min_duration

    @property
    def pending_count(self) -> int:
        """Number of calls still waiting for a resource."""
        return self._pending

    async def __call__(
        self, fn: Callable[..., Awaitable[R] | R], *args: Any, **kwargs: Any
    ) -> R:
        """Run ``fn(resource, *args, **kwargs)`` with a pooled resource.

        Returns:
            Whatever ``fn`` returns (awaited if it is awaitable)

        Raises:
            The abort reason if aborted while waiting for a resource; any
            exception raised by ``fn``
        """
        if not callable(fn):
            raise TypeError(f"Expected callable, got {type(fn).__name__}")

        signal = self._controller.signal
        self._pending += 1
        try:
            resource = await self._pool.acquire(signal)
        finally:
            self._pending -= 1

        loop = asyncio.get_running_loop()
        start = loop.time()
        try:
            result = fn(resource, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except BaseException:
            self._pool.release(resource)
            raise

        remaining = self._min_duration - (loop.time() - start)
        if remaining > 0:
            logger.debug("Holding resource for another %.3fs", remaining)
            loop.call_later(remaining, self._release_later, resource)
        else:
            self._pool.release(resource)
        return result

    def abort(self, reason: Any = None) -> None:
        """Revoke every call currently waiting for a resource.

        Calls made after this one wait normally again.

        Args:
            reason: Raised by the revoked calls; defaults to the limiter's
                ``abort_reason``
        """
        if reason is None:
            reason = self._abort_reason
        if reason is None:
            reason = AbortError()
        controller, self._controller = self._controller, AbortController()
        logger.debug("Aborting %d pending call(s)", self._pending)
        controller.abort(reason)

    def wrap(self, fn: Callable[..., Awaitable[R] | R]) -> Callable[..., Awaitable[R]]:
        """Decorate ``fn`` so every call runs through this limiter.

        The decorated function is called without the resource; the limiter
        supplies it as the first argument of ``fn``.
        """
        if not callable(fn):
            raise TypeError(f"Expected callable, got {type(fn).__name__}")

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            return await self(fn, *args, **kwargs)

        return wrapper

    def _release_later(self, resource: T) -> None:
        try:
            self._pool.release(resource)
        except Exception:
            logger.warning("Delayed release of %r failed", resource, exc_info=True)
            raise
