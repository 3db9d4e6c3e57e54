"""Resource pool and its construction options.

- Pool: lazily or eagerly filled pool with FIFO hand-out and release wake-up
- PoolOptions / normalize_options: the accepted construction forms
"""

from async_pool.pool.options import PoolOptions, normalize_options
from async_pool.pool.pool import ExhaustionError, Pool, PoolError


__all__ = [
    "ExhaustionError",
    "Pool",
    "PoolError",
    "PoolOptions",
    "normalize_options",
]
