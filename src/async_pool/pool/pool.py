"""Generic resource pool with synchronous and suspending acquisition."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Generator, Iterator, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from async_pool.cancellation import AbortSignal
from async_pool.deferred import Deferred
from async_pool.errors import PoolError
from async_pool.listeners import Event, Handler, ListenerRegistry
from async_pool.pool.options import PoolOptions, PoolOptionsLike, normalize_options


if TYPE_CHECKING:
    from async_pool.limiter.limiter import Limiter


T = TypeVar("T")

logger = logging.getLogger(__name__)


class ExhaustionError(PoolError):
    """Raised when the factory runs dry while eagerly filling a pool.

    Resources created before the factory returned None stay in the pool.
    """

    def __init__(self, requested: int, created: int):
        self.requested = requested
        self.created = created
        super().__init__(
            "Pool: create resource failed, None returned from create function "
            f"(created {created} of {requested})"
        )


class Pool(Generic[T]):
    """A pool of reusable resources handed out under mutual exclusion.

    Resources are opaque to the pool and compared by identity. They are made
    by a factory, either eagerly (``initial_size`` / ``bulk_create``) or
    lazily when ``acquire`` finds nothing available. The factory signals that
    no more resources can be made by returning None.

    Each resource is either available or in use. Every in-use resource owns
    a ``Deferred`` that is completed when it is released; suspended
    acquirers race all of them and retry from the top when any fires, so a
    single release may wake several waiters of which only one wins.
    Immediately available resources are handed out first-in, first-out;
    waiters have no ordering guarantee.

    Args:
        options: A capacity (int), a factory callable, ``PoolOptions`` or a
            mapping of its fields. See ``normalize_options``.

    Raises:
        ExhaustionError: If ``initial_size`` cannot be satisfied

    Example:
        pool = Pool({"create": lambda i: Connection() if i < 5 else None})

        conn = await pool.acquire()
        try:
            await conn.execute("SELECT 1")
        finally:
            pool.release(conn)

        # Or as a context manager
        async with pool.lease() as conn:
            await conn.execute("SELECT 1")
    """

    def __init__(self, options: PoolOptionsLike | None = None):
        opts: PoolOptions[T] = normalize_options(options)
        self._create = opts.create
        self._reset = opts.reset

        # Keyed by id() for identity semantics; dicts keep insertion order
        self._available: dict[int, T] = {}
        self._in_use: dict[int, tuple[T, Deferred[T]]] = {}
        self._created_count = 0

        self._listeners: ListenerRegistry[T] = ListenerRegistry()
        # Completed whenever resources appear without a release
        self._restocked: Deferred[None] = Deferred()

        self.bulk_create(opts.initial_size)

    @classmethod
    def from_items(
        cls, items: Sequence[T], reset: Callable[[T], object] | None = None
    ) -> "Pool[T]":
        """Create a pool holding exactly ``items``, in order.

        Args:
            items: The resources to pool
            reset: Optional callback run on each item when it is released
        """
        items = list(items)

        def create(index: int) -> T | None:
            return items[index] if index < len(items) else None

        return cls(PoolOptions(create=create, reset=reset, initial_size=len(items)))

    @property
    def available_size(self) -> int:
        """Number of resources ready to be acquired."""
        return len(self._available)

    @property
    def in_use_size(self) -> int:
        """Number of resources currently acquired."""
        return len(self._in_use)

    @property
    def total_size(self) -> int:
        """Number of existing resources, excluding ones not created yet."""
        return len(self._available) + len(self._in_use)

    @property
    def created_count(self) -> int:
        """How many times the factory has been called. Never decreases."""
        return self._created_count

    def __len__(self) -> int:
        return len(self._available)

    def on(self, event: Event, handler: Handler[T]) -> None:
        """Register a handler for ``"acquire"`` or ``"release"``."""
        self._listeners.on(event, handler)

    def off(self, event: Event, handler: Handler[T] | None = None) -> None:
        """Unregister a handler, or every handler for ``event`` if omitted."""
        self._listeners.off(event, handler)

    def bulk_create(self, size: int) -> None:
        """Eagerly create ``size`` resources and make them available.

        The factory is called with 0, 1, ... ``size - 1``.

        Raises:
            ValueError: If size is negative
            ExhaustionError: If the factory returns None before ``size``
                resources were created. Those already created are kept.
        """
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")

        added = 0
        try:
            for index in range(size):
                resource = self._call_factory(index)
                if resource is None:
                    raise ExhaustionError(requested=size, created=added)
                if self._is_tracked(resource):
                    logger.debug(
                        "Factory returned an already pooled resource: %r", resource
                    )
                    continue
                self._available[id(resource)] = resource
                added += 1
        finally:
            if added:
                self._wake_waiters()

    def try_acquire(self) -> T | None:
        """Acquire a resource without suspending.

        Takes the oldest available resource, otherwise tries to create one.

        Returns:
            The acquired resource, or None if none is available and the
            factory is exhausted
        """
        if self._available:
            resource = self._available.pop(next(iter(self._available)))
        else:
            resource = self._call_factory(self.total_size)
            if resource is None:
                return None
            if self._is_tracked(resource):
                logger.debug(
                    "Factory returned an already pooled resource: %r", resource
                )
                return None
            logger.debug("Lazily created resource #%d", self.total_size + 1)

        self._in_use[id(resource)] = (resource, Deferred())
        self._listeners.emit("acquire", resource)
        return resource

    async def acquire(self, signal: AbortSignal | None = None) -> T:
        """Acquire a resource, suspending until one is released if needed.

        Args:
            signal: Optional cancellation signal, checked only when the call
                would have to wait

        Returns:
            The acquired resource

        Raises:
            The signal's error (``AbortError`` by default) if the signal is
            aborted while waiting
        """
        while True:
            resource = self.try_acquire()
            if resource is not None:
                return resource

            if signal is not None:
                signal.raise_if_aborted()

            waiters = {deferred.future for _, deferred in self._in_use.values()}
            if not waiters:
                logger.debug("Waiting for a resource with none in use")
            waiters.add(self._restocked.future)
            if signal is not None:
                waiters.add(signal.future)

            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

            if signal is not None:
                signal.raise_if_aborted()
            logger.debug("Woken by a release, retrying acquire")

    def release(self, resource: T) -> None:
        """Return an acquired resource to the pool.

        Runs the reset callback, emits ``"release"``, makes the resource
        available again and wakes suspended acquirers. Releasing a resource
        that is not in use does nothing.

        Raises:
            Any exception raised by the reset callback. The resource is then
            neither available nor in use.
        """
        entry = self._in_use.pop(id(resource), None)
        if entry is None:
            return

        _, deferred = entry
        try:
            if self._reset is not None:
                try:
                    self._reset(resource)
                except Exception:
                    logger.warning(
                        "Reset callback failed, %r left out of the pool",
                        resource,
                        exc_info=True,
                    )
                    raise
            self._listeners.emit("release", resource)
            self._available[id(resource)] = resource
        finally:
            deferred.complete(resource)

    def clear(self) -> None:
        """Forget every resource, available or in use.

        No reset callback runs. The pool can be refilled afterwards;
        acquirers suspended on discarded resources wake up and retry.
        """
        discarded = list(self._in_use.values())
        self._available.clear()
        self._in_use.clear()
        for resource, deferred in discarded:
            deferred.complete(resource)
        self._wake_waiters()

    async def drain(self) -> None:
        """Wait until every resource in use right now has been released.

        Resources acquired after this call starts are not waited for.
        """
        pending = [deferred.future for _, deferred in self._in_use.values()]
        if pending:
            await asyncio.gather(*pending)

    def __await__(self) -> Generator[Any, None, None]:
        return self.drain().__await__()

    def __iter__(self) -> Iterator[T]:
        """Acquire resources without suspending until none is left."""
        while True:
            resource = self.try_acquire()
            if resource is None:
                return
            yield resource

    def __aiter__(self) -> AsyncIterator[T]:
        """Acquire resources forever, suspending whenever none is left."""
        return self._acquire_forever()

    async def _acquire_forever(self) -> AsyncIterator[T]:
        while True:
            yield await self.acquire()

    @asynccontextmanager
    async def lease(self, signal: AbortSignal | None = None) -> AsyncIterator[T]:
        """Acquire a resource for the duration of an ``async with`` block."""
        resource = await self.acquire(signal)
        try:
            yield resource
        finally:
            self.release(resource)

    def limiter(
        self, min_duration: float = 0.0, abort_reason: Any = None
    ) -> "Limiter[T]":
        """Create a limiter running functions against this pool's resources.

        See ``Limiter`` for the arguments.
        """
        from async_pool.limiter.limiter import Limiter

        return Limiter(self, min_duration=min_duration, abort_reason=abort_reason)

    def _call_factory(self, created_count: int) -> T | None:
        self._created_count += 1
        return self._create(created_count)

    def _is_tracked(self, resource: T) -> bool:
        key = id(resource)
        return key in self._available or key in self._in_use

    def _wake_waiters(self) -> None:
        restocked, self._restocked = self._restocked, Deferred()
        restocked.complete(None)

    def __repr__(self) -> str:
        return (
            f"Pool(available={self.available_size}, in_use={self.in_use_size}, "
            f"created={self._created_count})"
        )
