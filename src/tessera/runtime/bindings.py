"""ContextVar-backed bindings for runtime resources.

A Binding holds the process default for one resource and lets a request
rebind it for its own task context. Concurrent requests never observe
each other's bindings, and ``restore`` puts back exactly what was bound
before.

Example:
    binding = Binding("cache", CacheSettings(store="redis", prefix="app_"))
    token = binding.bind(CacheSettings(store="redis", prefix="tenant_7_"))
    binding.get().prefix  # "tenant_7_"
    binding.restore(token)
    binding.get().prefix  # "app_"
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

# Marks "nothing bound in this context"
_UNSET: Any = object()


@dataclass(frozen=True)
class BindingToken(Generic[T]):
    """What was bound before a rebind, used to restore it."""

    binding: Binding[T]
    previous: Any


class Binding(Generic[T]):
    """A per-context value with a process-wide default."""

    def __init__(self, name: str, default: T) -> None:
        self.name = name
        self._default = default
        self._var: ContextVar[Any] = ContextVar(name, default=_UNSET)

    @property
    def default(self) -> T:
        return self._default

    def get(self) -> T:
        value = self._var.get()
        if value is _UNSET:
            return self._default
        return value  # type: ignore[no-any-return]

    def is_bound(self) -> bool:
        return self._var.get() is not _UNSET

    def bind(self, value: T) -> BindingToken[T]:
        previous = self._var.get()
        self._var.set(value)
        return BindingToken(self, previous)

    def restore(self, token: BindingToken[T]) -> None:
        if token.binding is not self:
            raise ValueError(f"Token belongs to binding '{token.binding.name}', not '{self.name}'")
        self._var.set(token.previous)
