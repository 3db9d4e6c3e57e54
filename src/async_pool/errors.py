"""Exceptions shared by the pool and its cancellation signals."""


class PoolError(Exception):
    """Base exception for pool failures."""

    pass
