"""Observer handles: how the registry refers to an observer and invokes it.

A handle is one of two variants:

* ``NamedHandle`` wraps a class, an object or an import string. It is resolved
  when invoked and called through ``handle_<action>(context)``. Named handles
  may declare their own observations via ``observations()``.
* ``FunctionHandle`` wraps a plain callable invoked as ``fn(action, context)``.
  It carries no observation list and must be registered explicitly.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, NamedTuple, Optional, Tuple

from werkzeug.utils import ImportStringError, import_string

from observable.core.actions import Action
from observable.core.errors import UnresolvableHandle


class NotificationContext(NamedTuple):
    """What every observer receives alongside the action."""

    repo: Any
    old: Optional[Any]
    new: Optional[Any]


class Observer:
    """Base class for named observers.

    Every hook acknowledges by default; override the ones you care about and
    return ``Ok(value)`` or ``Error(value)`` when a result matters.

        class SubscribersObserver(Observer):
            def observations(self):
                return [(Post, "insert")]

            def handle_insert(self, context):
                notify_subscribers(context.new)
    """

    def observations(self) -> Iterable[Tuple[type, "Action | str"]]:
        return []

    def handle_insert(self, context: NotificationContext) -> Any:
        return None

    def handle_update(self, context: NotificationContext) -> Any:
        return None

    def handle_delete(self, context: NotificationContext) -> Any:
        return None


def _dotted_name(obj: Any) -> str:
    cls = obj if isinstance(obj, type) else type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


class ObserverHandle:
    """Common interface of both handle variants."""

    name: str

    def notify(self, action: Action, context: NotificationContext) -> Any:
        raise NotImplementedError

    def observations(self) -> List[Tuple[type, "Action | str"]]:
        raise NotImplementedError


class NamedHandle(ObserverHandle):
    __slots__ = ("ref", "name")

    def __init__(self, ref: Any) -> None:
        if isinstance(ref, str):
            name = ref.replace(":", ".")
        else:
            name = _dotted_name(ref)
        self.ref = ref
        self.name = name

    def resolve(self) -> Any:
        target = self.ref
        if isinstance(target, str):
            try:
                target = import_string(target)
            except ImportStringError as exc:
                raise UnresolvableHandle(f"cannot import observer {self.ref!r}") from exc
        if isinstance(target, type):
            target = target()
        return target

    def observations(self) -> List[Tuple[type, "Action | str"]]:
        target = self.resolve()
        declared = getattr(target, "observations", None)
        if not callable(declared):
            raise UnresolvableHandle(f"{self.name} does not declare observations()")
        return list(declared() or [])

    def notify(self, action: Action, context: NotificationContext) -> Any:
        target = self.resolve()
        method = getattr(target, f"handle_{action.value}", None)
        if not callable(method):
            raise UnresolvableHandle(f"{self.name} has no handle_{action.value}()")
        return method(context)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedHandle):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(("named", self.name))

    def __repr__(self) -> str:
        return f"NamedHandle({self.name})"


class FunctionHandle(ObserverHandle):
    __slots__ = ("fn", "name")

    def __init__(self, fn: Callable[[Action, NotificationContext], Any]) -> None:
        self.fn = fn
        self.name = getattr(fn, "__qualname__", None) or repr(fn)

    def observations(self) -> List[Tuple[type, "Action | str"]]:
        raise UnresolvableHandle(
            f"function observer {self.name} has no observations; register it for an entity and action"
        )

    def notify(self, action: Action, context: NotificationContext) -> Any:
        return self.fn(action, context)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionHandle):
            return NotImplemented
        return self.fn == other.fn

    def __hash__(self) -> int:
        return hash(("function", self.fn))

    def __repr__(self) -> str:
        return f"FunctionHandle({self.name})"


def as_handle(value: Any) -> ObserverHandle:
    """Coerce a raw observer reference into a handle."""
    if isinstance(value, ObserverHandle):
        return value
    if isinstance(value, (str, type, Observer)):
        return NamedHandle(value)
    if callable(value):
        return FunctionHandle(value)
    raise UnresolvableHandle(f"cannot use {value!r} as an observer")


__all__ = [
    "NotificationContext",
    "Observer",
    "ObserverHandle",
    "NamedHandle",
    "FunctionHandle",
    "as_handle",
]
