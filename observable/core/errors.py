"""Exceptions raised by the observer registry and the notifying repository."""

from __future__ import annotations

from typing import Any, Optional


class ObservableError(Exception):
    """Base class for observable errors."""


class RegistryUnavailable(ObservableError):
    """The observer registry was closed or never initialized."""


class UnresolvableHandle(ObservableError):
    """A value could not be turned into (or resolved as) an observer."""


class InvalidObservation(UnresolvableHandle, ValueError):
    """An (entity type, action) pair that cannot be observed."""


class InvalidObserverResponse(ObservableError, TypeError):
    """An observer returned something other than None, Ok or Error."""


class NotifyError(ObservableError):
    """A write-and-notify call failed; raised by the *_or_raise variants."""

    def __init__(self, step: Optional[str], value: Any) -> None:
        self.step = step
        self.value = value
        super().__init__(f"{step or 'transaction'} failed: {value!r}")


class InvalidChangesetError(NotifyError):
    """The write itself was rejected before any observer ran."""


class ObserverFailureError(NotifyError):
    """An observer reported failure and the write was rolled back."""


__all__ = [
    "ObservableError",
    "RegistryUnavailable",
    "UnresolvableHandle",
    "InvalidObservation",
    "InvalidObserverResponse",
    "NotifyError",
    "InvalidChangesetError",
    "ObserverFailureError",
]
