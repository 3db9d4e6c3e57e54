"""Shortcuts building a pool and a limiter in one call."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from async_pool.limiter.limiter import Limiter
from async_pool.pool.options import PoolOptionsLike
from async_pool.pool.pool import Pool


T = TypeVar("T")
R = TypeVar("R")


def p_limit(
    options: "PoolOptionsLike | Pool[Any]",
    min_duration: float = 0.0,
    abort_reason: Any = None,
) -> Limiter[Any]:
    """Create a limiter on an existing pool or on a new one.

    Args:
        options: A ``Pool`` to reuse, or any form ``Pool`` accepts
        min_duration: See ``Limiter``
        abort_reason: See ``Limiter``

    Example:
        limiter = p_limit(3)
        await asyncio.gather(*(limiter(lambda _, u: fetch(u), u) for u in urls))
    """
    pool = options if isinstance(options, Pool) else Pool(options)
    return Limiter(pool, min_duration=min_duration, abort_reason=abort_reason)


def limit(
    fn: Callable[..., Awaitable[R] | R],
    options: "PoolOptionsLike | Pool[Any]",
    min_duration: float = 0.0,
    abort_reason: Any = None,
) -> Callable[..., Awaitable[R]]:
    """Wrap ``fn`` so calls to it are limited by a pool.

    The returned function takes ``fn``'s arguments minus the leading
    resource, which the limiter supplies.

    Example:
        fetch = limit(fetch_with_session, {"create": make_session, "initial_size": 4})
        await fetch("https://example.com")
    """
    limiter = p_limit(options, min_duration=min_duration, abort_reason=abort_reason)
    return limiter.wrap(fn)
