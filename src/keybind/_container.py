from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Protocol,
    runtime_checkable,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    # Producer for factories / shared bindings: () -> value or (container) -> value
    Producer = Callable[..., object]


# Marks an unresolved shared binding (None is a valid memoized value)
_EMPTY: Any = object()


@runtime_checkable
class ContainerInterface(Protocol):
    """Standard container lookup capability."""

    def get(self, key: str) -> Any: ...

    def has(self, key: str) -> bool: ...


class ContainerError(Exception):
    pass


class NotFoundError(ContainerError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__(f"No entry was found for key: {key!r}")
        self.key = key


class NotBoundError(ContainerError, RuntimeError):
    pass


class BindingKind(Enum):
    FACTORY = "factory"
    SHARED = "shared"
    VALUE = "value"


@dataclass
class Binding:
    kind: BindingKind
    producer: Producer | None = None
    value: object = _EMPTY  # literal for VALUE, memoization cell for SHARED
    takes_container: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def produce(self, container: Container) -> object:
        assert self.producer is not None  # noqa: S101
        if self.takes_container:
            return self.producer(container)
        return self.producer()


class _InstanceSlot:
    """Process-wide cell holding the global container."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._container: ContainerInterface | None = None

    def store(self, container: ContainerInterface | None) -> None:
        with self._lock:
            self._container = container

    def load(self) -> ContainerInterface:
        with self._lock:
            container = self._container
        if container is None:
            msg = "No container instance has been set. Call Container.set_instance() first."
            raise NotBoundError(msg)
        return container


class Container:
    """Minimal service container.

    - factories: producer invoked on every `get`
    - shared: producer invoked once, result memoized until the key is re-registered
    - values: stored verbatim and returned as-is
    - optional process-wide instance via `set_instance` / `get_instance`.
    """

    _slot: ClassVar[_InstanceSlot] = _InstanceSlot()

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._bindings: dict[str, Binding] = {}
        self._lock = threading.RLock()

        for key, value in (values or {}).items():
            self.set_value(key, value)

    def register_factory(self, key: str, producer: Producer) -> None:
        """Register a producer invoked on every resolution of `key`.

        The producer takes no arguments, or a single one receiving this container:

          container.register_factory("clock", time.time)
          container.register_factory("repo", lambda c: Repo(c.get("db")))

        """
        takes_container = _takes_container(producer)
        self._bind(key, Binding(kind=BindingKind.FACTORY, producer=producer, takes_container=takes_container))

    def register_shared(self, key: str, producer: Producer) -> None:
        """Register a producer invoked at most once; its result is reused by every `get`.

        Re-registering `key` discards the memoized result of the previous binding.
        """
        takes_container = _takes_container(producer)
        self._bind(key, Binding(kind=BindingKind.SHARED, producer=producer, takes_container=takes_container))

    def set(self, key: str, value: object) -> None:
        """Register `value` for `key`.

        Callables are registered as factories, anything else as a literal value.
        Use `set_value` to store a callable itself.
        """
        if callable(value):
            self.register_factory(key, value)
        else:
            self.set_value(key, value)

    def set_value(self, key: str, value: object) -> None:
        """Register a literal value, returned as-is (same object) by every `get`."""
        self._bind(key, Binding(kind=BindingKind.VALUE, value=value))

    def get(self, key: str) -> Any:
        """Resolve `key`.

        Producer errors propagate unchanged.
        """
        with self._lock:
            binding = self._bindings.get(key)

        if binding is None:
            raise NotFoundError(key)

        if binding.kind is BindingKind.VALUE:
            return binding.value

        if binding.kind is BindingKind.FACTORY:
            return binding.produce(self)

        # Shared: double-checked so concurrent first resolutions run the producer once
        if binding.value is _EMPTY:
            with binding.lock:
                if binding.value is _EMPTY:
                    binding.value = binding.produce(self)
        return binding.value

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._bindings

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._bindings)

    def _bind(self, key: str, binding: Binding) -> None:
        with self._lock:
            previous = self._bindings.get(key)
            self._bindings[key] = binding

        if previous is not None:
            logger.debug("Replacing %s binding for %r with %s binding", previous.kind.value, key, binding.kind.value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: object) -> None:
        self.set(key, value)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._bindings)

    @classmethod
    def set_instance(cls, container: ContainerInterface) -> None:
        """Store `container` as the process-wide instance, replacing any previous one."""
        if not isinstance(container, ContainerInterface):
            msg = f"Expected a container providing get()/has(), got {type(container).__name__}"
            raise TypeError(msg)
        cls._slot.store(container)
        logger.debug("Process-wide container set to %r", container)

    @classmethod
    def get_instance(cls) -> ContainerInterface:
        """Return the process-wide instance. Raises NotBoundError if none was set."""
        return cls._slot.load()

    @classmethod
    def reset_instance(cls) -> None:
        """Clear the process-wide instance."""
        cls._slot.store(None)


def _takes_container(producer: Producer) -> bool:
    """Whether `producer` expects the container as its single positional argument.

    Raise TypeError when `producer` is not callable or needs more than one argument.
    """
    if not callable(producer):
        msg = f"Producer must be callable, got {type(producer).__name__}"
        raise TypeError(msg)

    try:
        sig = inspect.signature(producer)
    except (TypeError, ValueError):
        # Builtins without introspectable signature: assume no arguments
        return False

    required_positional = 0
    for p in sig.parameters.values():
        if p.default is not inspect.Parameter.empty:
            continue
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            required_positional += 1
        elif p.kind is inspect.Parameter.KEYWORD_ONLY:
            msg = f"Producer {producer!r} has required keyword-only parameter '{p.name}'"
            raise TypeError(msg)

    if required_positional > 1:
        msg = f"Producer {producer!r} must accept zero or one argument, requires {required_positional}"
        raise TypeError(msg)

    return required_positional == 1
