"""Synchronous signals over snarfx observables.

Controllers expose their value through `Signal` objects: readable cells that
notify subscribers when their value changes. `Prop` is the writable kind.
Storage, dependency tracking and derivation are snarfx `Observable`,
`Computed` and `reaction`; this module adds type-strict change detection
and ordered listener dispatch on top.

Reading ``signal.value`` inside a snarfx ``computed`` or ``autorun`` tracks
the signal like any other observable.
"""

from typing import Any, Callable, Generic, TypeVar

from snarfx import Computed, Observable, reaction

T = TypeVar("T")
U = TypeVar("U")

Listener = Callable[[Any], None]
Equality = Callable[[Any, Any], bool]


def strict_equal(a: Any, b: Any) -> bool:
    """Equality that never crosses types, also inside containers.

    ``1`` and ``True`` (or ``0`` and ``0.0``) are distinct values, and so
    are ``{"x": 1}`` and ``{"x": True}``. Mapping key order is significant.
    """
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return list(a) == list(b) and all(strict_equal(v, b[k]) for k, v in a.items())
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(strict_equal(x, y) for x, y in zip(a, b))
    return a == b


class _Snapshot:
    """One committed value. Compared by identity inside snarfx."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value


class Signal(Generic[T]):
    """A readable, subscribable value.

    Example:
        >>> count = Prop(1)
        >>> doubled = count.map(lambda v: v * 2)
        >>> count.set(4)
        >>> doubled.value
        8
    """

    def __init__(self, value: T, equals: Equality = strict_equal):
        self._bind(Observable(_Snapshot(value)), equals)

    def _bind(self, source: Observable | Computed, equals: Equality) -> None:
        self._source = source
        self._equals = equals
        self._listeners: list[Listener] = []
        self._watcher = None
        self._frozen: _Snapshot | None = None
        self._disposed = False

    def _snapshot(self) -> _Snapshot:
        if self._frozen is not None:
            return self._frozen
        return self._source.get()

    @property
    def value(self) -> T:
        return self._snapshot().value

    def get(self) -> T:
        return self.value

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Subscribe to changes. Returns a function that unsubscribes."""
        if self._disposed:
            return lambda: None
        self._listeners.append(listener)
        if self._watcher is None:
            self._watcher = reaction(self._source.get, self._dispatch)

        def cancel() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return cancel

    def _dispatch(self, snapshot: _Snapshot) -> None:
        for listener in list(self._listeners):
            # A nested write already notified every listener with a newer value.
            if self._disposed or self._source.get() is not snapshot:
                break
            listener(snapshot.value)

    def map(self, fn: Callable[[T], U], equals: Equality = strict_equal) -> "Signal[U]":
        """Derived signal holding ``fn(value)``."""
        return _derive(lambda: fn(self.value), equals)

    def dispose(self) -> None:
        """Stop notifying and freeze the current value. Idempotent."""
        if self._disposed:
            return
        self._frozen = self._source.get()
        self._disposed = True
        self._listeners.clear()
        if self._watcher is not None:
            self._watcher.dispose()
            self._watcher = None
        if isinstance(self._source, Computed):
            self._source.dispose()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Prop(Signal[T]):
    """A writable signal."""

    def set(self, value: T) -> None:
        if self._disposed or self._equals(self.value, value):
            return
        self._source.set(_Snapshot(value))

    def update(self, fn: Callable[[T], T]) -> None:
        self.set(fn(self.value))


def _derive(compute: Callable[[], Any], equals: Equality) -> Signal[Any]:
    last: _Snapshot | None = None

    def evaluate() -> _Snapshot:
        nonlocal last
        value = compute()
        if last is None or not equals(last.value, value):
            last = _Snapshot(value)
        return last

    derived: Signal[Any] = Signal.__new__(Signal)
    derived._bind(Computed(evaluate), equals)
    return derived


def computed(
    *signals: Signal[Any], equals: Equality = strict_equal
) -> Callable[[Callable[..., T]], Signal[T]]:
    """Decorator building a signal from several inputs.

    Example:
        >>> first, last = Prop("Ada"), Prop("Lovelace")
        >>> @computed(first, last)
        ... def full(a, b):
        ...     return f"{a} {b}"
        >>> full.value
        'Ada Lovelace'
    """

    def decorator(fn: Callable[..., T]) -> Signal[T]:
        return _derive(lambda: fn(*(signal.value for signal in signals)), equals)

    return decorator


__all__ = ["Signal", "Prop", "computed", "strict_equal"]
