"""Normalization of the accepted pool construction forms."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Generic, TypeVar


T = TypeVar("T")

Factory = Callable[[int], T | None]
Reset = Callable[[T], object]


def create_default_resource(created_count: int) -> Any:
    """Return a fresh, empty, identity-distinct resource."""
    return SimpleNamespace()


def bounded_factory(capacity: int) -> Factory[Any]:
    """Factory producing default resources until ``capacity`` exist."""

    def create(created_count: int) -> Any:
        if created_count < capacity:
            return create_default_resource(created_count)
        return None

    return create


@dataclass(frozen=True)
class PoolOptions(Generic[T]):
    """Options for creating a ``Pool``.

    Attributes:
        create: Called with the number of resources created so far; returns a
            new resource, or None once no more can be made.
        reset: Called with a resource when it is released, before it becomes
            available again.
        initial_size: Number of resources created eagerly at construction.
    """

    create: Factory[T] = field(default=create_default_resource)
    reset: Reset[T] | None = None
    initial_size: int = 0

    def __post_init__(self) -> None:
        if not callable(self.create):
            raise TypeError(f"Expected callable, got {type(self.create).__name__}")
        if self.reset is not None and not callable(self.reset):
            raise TypeError(f"Expected callable, got {type(self.reset).__name__}")
        if self.initial_size < 0:
            raise ValueError(f"initial_size must be >= 0, got {self.initial_size}")


PoolOptionsLike = int | Callable[[int], Any] | PoolOptions[Any] | Mapping[str, Any]


def normalize_options(options: PoolOptionsLike | None = None) -> PoolOptions[Any]:
    """Turn any accepted construction form into ``PoolOptions``.

    Accepted forms:
        - int: lazily create up to that many default resources
        - callable: the factory itself
        - PoolOptions: returned unchanged
        - mapping with any of ``create``, ``reset``, ``initial_size``
        - None: unbounded default resources

    Raises:
        ValueError: If a capacity or initial size is negative
        TypeError: If the form is not recognised
    """
    if options is None:
        return PoolOptions()
    if isinstance(options, PoolOptions):
        return options
    # bool is an int subclass but never a meaningful capacity
    if isinstance(options, int) and not isinstance(options, bool):
        if options < 0:
            raise ValueError(f"capacity must be >= 0, got {options}")
        return PoolOptions(create=bounded_factory(options))
    if callable(options):
        return PoolOptions(create=options)
    if isinstance(options, Mapping):
        unknown = set(options) - {"create", "reset", "initial_size"}
        if unknown:
            raise TypeError(f"Unknown pool options: {', '.join(sorted(unknown))}")
        return PoolOptions(**options)
    raise TypeError(f"Unsupported pool options: {type(options).__name__}")
