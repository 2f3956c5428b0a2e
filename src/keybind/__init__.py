"""Minimal service container.

This package provides a small service container for Python, allowing registration
of factories, shared (memoized) factories and literal values under string keys,
and their resolution through the standard `get(key)` / `has(key)` lookup.

Exports:
- `Container`: Key -> binding map with a process-wide instance accessor.
- `ContainerInterface`: Protocol for anything offering `get` / `has`.
- `Binding`, `BindingKind`: Registered bindings (factory, shared or value).
- `NotFoundError`: Raised by `get` for unknown keys (a `KeyError`).
- `NotBoundError`: Raised by `Container.get_instance()` before `set_instance()`.
"""

from ._container import (
    Binding,
    BindingKind,
    Container,
    ContainerError,
    ContainerInterface,
    NotBoundError,
    NotFoundError,
)


__all__ = [
    "Binding",
    "BindingKind",
    "Container",
    "ContainerError",
    "ContainerInterface",
    "NotBoundError",
    "NotFoundError",
]
