"""Async resource pool and limiter for Python."""

from async_pool.cancellation import AbortController, AbortError, AbortSignal
from async_pool.deferred import Deferred
from async_pool.limiter import Limiter, limit, p_limit
from async_pool.listeners import ListenerRegistry
from async_pool.pool import (
    ExhaustionError,
    Pool,
    PoolError,
    PoolOptions,
    normalize_options,
)


__all__ = [
    "AbortController",
    "AbortError",
    "AbortSignal",
    "Deferred",
    "ExhaustionError",
    "Limiter",
    "ListenerRegistry",
    "Pool",
    "PoolError",
    "PoolOptions",
    "limit",
    "normalize_options",
    "p_limit",
]
