"""Value controller tree.

A `Controller` is a handle on one position of a value tree: ``signal``
reads it, ``change`` writes it, ``status`` carries the externally supplied
validation outcome and ``disabled`` combines local and inherited state.

Controllers form an ownership tree. Every controller created *from* another
one (object fields, array items, union branches, adapters) is owned by it,
and `Controller.dispose` tears the whole subtree down exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Sequence, TypeVar

from structure_engine.core.log import get_logger
from structure_engine.reactive import Prop, Signal, computed

logger = get_logger("structure.controller")

T = TypeVar("T")

PathSegment = str | int
Path = list[PathSegment]


# =============================================================================
# Validation Status
# =============================================================================


@dataclass
class ControllerError:
    """Error attached to a tree position, with errors of nested positions."""

    message: str | None = None
    dependencies: dict[PathSegment, ControllerError] = field(default_factory=dict)


class ValidationState(str, Enum):
    """Outcome category of a `ControllerValidation`."""

    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ControllerValidation:
    """Validation status as seen by one controller."""

    state: ValidationState
    error: ControllerError | None = None

    @classmethod
    def valid(cls) -> ControllerValidation:
        return cls(ValidationState.VALID)

    @classmethod
    def unknown(cls) -> ControllerValidation:
        return cls(ValidationState.UNKNOWN)

    @classmethod
    def invalid(cls, error: ControllerError) -> ControllerValidation:
        return cls(ValidationState.INVALID, error)

    @property
    def is_invalid(self) -> bool:
        return self.state == ValidationState.INVALID


def map_validation(
    status: ControllerValidation, segments: Sequence[PathSegment]
) -> ControllerValidation:
    """Narrow a parent status to the position reached through ``segments``.

    A position without a recorded error is valid.
    """
    if not status.is_invalid:
        return status
    error = status.error
    for segment in segments:
        if error is None:
            break
        deps = error.dependencies
        error = deps.get(segment, deps.get(str(segment)))
    if error is None:
        return ControllerValidation.valid()
    return ControllerValidation.invalid(error)


# =============================================================================
# Base Controller
# =============================================================================


class Controller(Generic[T]):
    """Mutable-value handle bound to one tree position.

    Args:
        path: Keys from the root to this position.
        change: Write callback, usually rewriting the owner's value.
        signal: Read channel for the current value.
        status: Validation channel.
        parent_disabled: Disabled state inherited from the owner.
    """

    def __init__(
        self,
        path: Sequence[PathSegment],
        change: Callable[[T], None],
        signal: Signal[T],
        status: Signal[ControllerValidation],
        parent_disabled: Signal[bool] | None = None,
    ):
        self.path: Path = list(path)
        self._change = change
        self.signal = signal
        self.status = status
        self._local_disabled = Prop(False)
        self.disabled: Signal[bool] = computed(
            self._local_disabled, parent_disabled or Signal(False)
        )(lambda local, inherited: bool(local or inherited))
        self._children: dict[PathSegment, Controller[Any]] = {}
        self._owned: list[Controller[Any]] = []
        self._adapters: dict[str, Controller[Any]] = {}
        self._on_dispose: list[Callable[[], None]] = []
        self._disposed = False

    # -------------------------------------------------------------------------
    # Value access
    # -------------------------------------------------------------------------

    @property
    def value(self) -> T:
        return self.signal.value

    def change(self, value: T) -> None:
        if self._disposed:
            logger.debug(f"Ignoring change on disposed controller {self.path}")
            return
        self._change(value)

    @property
    def error(self) -> str | None:
        """Message recorded at exactly this position, if any."""
        status = self.status.value
        if status.is_invalid and status.error is not None:
            return status.error.message
        return None

    @property
    def has_error(self) -> bool:
        return self.status.value.is_invalid

    def set_disabled(self, disabled: bool) -> None:
        self._local_disabled.set(disabled)

    def disable(self) -> None:
        self.set_disabled(True)

    def enable(self) -> None:
        self.set_disabled(False)

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """Register a callback run once when this controller is disposed."""
        if self._disposed:
            callback()
            return
        self._on_dispose.append(callback)

    def adopt(self, key: PathSegment, child: Controller[Any]) -> Controller[Any]:
        """Own ``child`` under ``key``, disposing any controller it replaces."""
        previous = self._children.get(key)
        if previous is not None and previous is not child:
            previous.dispose()
        self._children[key] = child
        return child

    def release(self, key: PathSegment) -> None:
        """Dispose and forget the child owned under ``key``."""
        child = self._children.pop(key, None)
        if child is not None:
            child.dispose()

    def own(self, handle: Controller[Any]) -> Controller[Any]:
        """Own a controller that is not addressed by a path segment."""
        self._owned.append(handle)
        return handle

    def disown(self, handle: Controller[Any]) -> None:
        """Dispose and forget a handle registered with `own`."""
        if handle in self._owned:
            self._owned.remove(handle)
        handle.dispose()

    def child(self, key: PathSegment) -> Controller[Any] | None:
        return self._children.get(key)

    @property
    def children(self) -> dict[PathSegment, Controller[Any]]:
        return dict(self._children)

    def find(self, path: Sequence[PathSegment]) -> Controller[Any] | None:
        """Locate a live descendant by path relative to this controller."""
        node: Controller[Any] | None = self
        for segment in path:
            if node is None:
                return None
            node = node._lookup(segment)
        return node

    def _lookup(self, segment: PathSegment) -> Controller[Any] | None:
        found = self._children.get(segment)
        if found is not None:
            return found
        for adapter in self._adapters.values():
            found = adapter._lookup(segment)
            if found is not None:
                return found
        return None

    def dispose(self) -> None:
        """Tear down this controller and everything it owns. Idempotent."""
        if self._disposed:
            return
        self._disposed = True

        for child in list(self._children.values()):
            child.dispose()
        self._children.clear()
        for handle in self._owned:
            handle.dispose()
        self._owned.clear()
        for adapter in self._adapters.values():
            adapter.dispose()
        self._adapters.clear()

        callbacks, self._on_dispose = self._on_dispose, []
        for callback in callbacks:
            callback()

        self.disabled.dispose()
        self.signal.dispose()
        self.status.dispose()

    # -------------------------------------------------------------------------
    # Adapters
    # -------------------------------------------------------------------------

    def object(self) -> ObjectController:
        """View this position as a mapping. Created once, then cached."""
        if isinstance(self, ObjectController):
            return self
        adapter = self._adapters.get("object")
        if adapter is None:
            adapter = ObjectController(
                self.path,
                self.change,
                self.signal.map(lambda v: v if isinstance(v, dict) else {}),
                self.status.map(lambda s: s),
                self.disabled,
            )
            self._adapters["object"] = adapter
        return adapter  # type: ignore[return-value]

    def array(self) -> ArrayController:
        """View this position as a sequence. Created once, then cached."""
        if isinstance(self, ArrayController):
            return self
        adapter = self._adapters.get("array")
        if adapter is None:
            adapter = ArrayController(
                self.path,
                self.change,
                self.signal.map(lambda v: list(v) if isinstance(v, (list, tuple)) else []),
                self.status.map(lambda s: s),
                self.disabled,
            )
            self._adapters["array"] = adapter
        return adapter  # type: ignore[return-value]

    def transform(
        self,
        get: Callable[[T], Any],
        put: Callable[[Any], T],
        subpath: Sequence[PathSegment] = (),
    ) -> Controller[Any]:
        """Owned controller exposing a converted view of this value.

        Args:
            get: Maps this value to the view.
            put: Maps a view value back to this value.
            subpath: Segments appended to the path and used to narrow status.
        """
        segments = list(subpath)
        handle: Controller[Any] = Controller(
            [*self.path, *segments],
            lambda v: self.change(put(v)),
            self.signal.map(get),
            self.status.map(lambda s: map_validation(s, segments)),
            self.disabled,
        )
        return self.own(handle)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self.path!r}, value={self.value!r})"


# =============================================================================
# Object Controller
# =============================================================================


class ObjectController(Controller[dict[str, Any]]):
    """Controller over a mapping with cached per-key field controllers."""

    def field(self, key: str) -> Controller[Any]:
        existing = self._children.get(key)
        if existing is not None:
            return existing

        def change(value: Any) -> None:
            self.change({**self.value, key: value})

        child: Controller[Any] = Controller(
            [*self.path, key],
            change,
            self.signal.map(lambda v: v.get(key) if isinstance(v, dict) else None),
            self.status.map(lambda s: map_validation(s, [key])),
            self.disabled,
        )
        return self.adopt(key, child)

    def remove_field(self, key: str) -> None:
        """Drop ``key`` from the mapping and dispose its controller."""
        self.release(key)
        if key in self.value:
            self.change({k: v for k, v in self.value.items() if k != key})

    def rename_field(self, old: str, new: str) -> None:
        """Move the value at ``old`` to ``new``, keeping key order."""
        if old == new or old not in self.value or new in self.value:
            return
        self.release(old)
        self.change({(new if k == old else k): v for k, v in self.value.items()})


# =============================================================================
# Array Controller
# =============================================================================


class ArrayController(Controller[list[Any]]):
    """Controller over a sequence with cached per-index item controllers.

    When the sequence shrinks, controllers of indexes past the new end are
    disposed.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.length: Signal[int] = self.signal.map(len)
        cancel = self.length.on(self._trim)
        self.on_dispose(cancel)
        self.on_dispose(self.length.dispose)

    def _trim(self, length: int) -> None:
        for index in [k for k in self._children if isinstance(k, int) and k >= length]:
            self.release(index)

    def item(self, index: int) -> Controller[Any]:
        existing = self._children.get(index)
        if existing is not None:
            return existing

        def change(value: Any) -> None:
            items = list(self.value)
            while len(items) <= index:
                items.append(None)
            items[index] = value
            self.change(items)

        child: Controller[Any] = Controller(
            [*self.path, index],
            change,
            self.signal.map(lambda v: v[index] if index < len(v) else None),
            self.status.map(lambda s: map_validation(s, [index])),
            self.disabled,
        )
        return self.adopt(index, child)

    def push(self, *values: Any) -> None:
        self.change([*self.value, *values])

    def pop(self) -> Any:
        items = list(self.value)
        if not items:
            return None
        last = items.pop()
        self.change(items)
        return last

    def shift(self) -> Any:
        items = list(self.value)
        if not items:
            return None
        first = items.pop(0)
        self.change(items)
        return first

    def unshift(self, *values: Any) -> None:
        self.change([*values, *self.value])

    def remove_at(self, index: int) -> None:
        items = list(self.value)
        if 0 <= index < len(items):
            del items[index]
            self.change(items)

    def splice(self, start: int, delete_count: int = 0, *values: Any) -> list[Any]:
        """Remove ``delete_count`` items at ``start`` and insert ``values``."""
        items = list(self.value)
        removed = items[start : start + delete_count]
        items[start : start + delete_count] = values
        self.change(items)
        return removed

    def move(self, from_index: int, to_index: int) -> None:
        items = list(self.value)
        if not (0 <= from_index < len(items)) or from_index == to_index:
            return
        moved = items.pop(from_index)
        items.insert(max(0, min(to_index, len(items))), moved)
        self.change(items)


# =============================================================================
# Union Controller
# =============================================================================


@dataclass
class UnionBranch:
    """One alternative of a union value.

    Attributes:
        key: Branch identifier (a type keyword for type-array unions).
        label: Display label.
        detect: Whether a value belongs to this branch.
        convert: Optional conversion into this branch; returns ``(ok, value)``.
        default_value: Factory for the value used when conversion fails.
    """

    key: str
    label: str
    detect: Callable[[Any], bool]
    default_value: Callable[[], Any]
    convert: Callable[[Any], tuple[bool, Any]] | None = None


class UnionController(Controller[Any]):
    """Controller tracking which branch of a union the value belongs to.

    ``active_branch`` is the key of the first branch whose ``detect``
    accepts the value, or the first branch. Branch controllers share this
    controller's path and status, since a union value is not nested.
    When the active branch changes, controllers of other branches are
    disposed.
    """

    def __init__(
        self,
        path: Sequence[PathSegment],
        change: Callable[[Any], None],
        signal: Signal[Any],
        status: Signal[ControllerValidation],
        branches: Sequence[UnionBranch],
        parent_disabled: Signal[bool] | None = None,
    ):
        super().__init__(path, change, signal, status, parent_disabled)
        self.branches: tuple[UnionBranch, ...] = tuple(branches)
        self._branches: dict[str, Controller[Any]] = {}
        self.active_branch: Signal[str] = signal.map(self._detect)
        cancel = self.active_branch.on(self._on_branch_change)
        self.on_dispose(cancel)
        self.on_dispose(self.active_branch.dispose)

    def _detect(self, value: Any) -> str:
        for branch in self.branches:
            if branch.detect(value):
                return branch.key
        return self.branches[0].key if self.branches else "unknown"

    def _branch(self, key: str) -> UnionBranch:
        for branch in self.branches:
            if branch.key == key:
                return branch
        raise KeyError(f"Unknown branch: {key}")

    def _on_branch_change(self, key: str) -> None:
        for other in [k for k in self._branches if k != key]:
            self.disown(self._branches.pop(other))

    def branch_controller(self, key: str) -> Controller[Any]:
        """Controller for branch ``key``, created on first use.

        Raises:
            KeyError: If no branch has that key.
        """
        branch = self._branch(key)
        existing = self._branches.get(key)
        if existing is not None:
            return existing

        def read(value: Any) -> Any:
            return value if branch.detect(value) else branch.default_value()

        handle: Controller[Any] = Controller(
            self.path,
            self.change,
            self.signal.map(read),
            self.status.map(lambda s: s),
            self.disabled,
        )
        self._branches[key] = handle
        return self.own(handle)

    @property
    def active_controller(self) -> Controller[Any]:
        return self.branch_controller(self.active_branch.value)

    @property
    def active_branch_definition(self) -> UnionBranch | None:
        key = self.active_branch.value
        return next((b for b in self.branches if b.key == key), None)

    def switch_to_branch(self, key: str) -> bool:
        """Move the value to branch ``key``.

        The current value is kept when the branch already accepts it,
        converted when the branch can convert it, and otherwise replaced by
        the branch default.

        Detection is order dependent: ``active_branch`` is the first
        branch accepting the value, so switching to a later branch that
        accepts the same value (uuid after string, double after int32)
        keeps the value and leaves the earlier branch active.

        Raises:
            KeyError: If no branch has that key.
        """
        branch = self._branch(key)
        current = self.value
        if branch.detect(current):
            return True
        if branch.convert is not None:
            ok, converted = branch.convert(current)
            if ok:
                self.change(converted)
                return True
        self.change(branch.default_value())
        return True


# =============================================================================
# Root Factory
# =============================================================================


def create_controller(
    initial: Any = None,
    on_change: Callable[[Any], None] | None = None,
    disabled: bool = False,
) -> Controller[Any]:
    """Create a root controller holding ``initial``.

    The root's ``signal`` and ``status`` are writable `Prop` cells; feed
    external validation results through ``controller.status.set(...)``.

    Args:
        initial: Starting value.
        on_change: Called after every committed write.
        disabled: Start disabled.

    Example:
        >>> root = create_controller({"name": "Ada"})
        >>> root.object().field("name").change("Grace")
        >>> root.value
        {'name': 'Grace'}
    """
    value: Prop[Any] = Prop(initial)
    status: Prop[ControllerValidation] = Prop(ControllerValidation.unknown())

    def change(new_value: Any) -> None:
        value.set(new_value)
        if on_change is not None:
            on_change(new_value)

    root: Controller[Any] = Controller([], change, value, status)
    root.set_disabled(disabled)
    return root


__all__ = [
    "Path",
    "PathSegment",
    "ControllerError",
    "ValidationState",
    "ControllerValidation",
    "map_validation",
    "Controller",
    "ObjectController",
    "ArrayController",
    "UnionBranch",
    "UnionController",
    "create_controller",
]
