"""Limiters running work against pooled resources."""

from async_pool.limiter.limiter import Limiter
from async_pool.limiter.shortcuts import limit, p_limit


__all__ = ["Limiter", "limit", "p_limit"]
