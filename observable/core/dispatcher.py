"""Turns a pending write into transactional observer invocations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from observable.core.actions import Action
from observable.core.errors import InvalidObserverResponse
from observable.core.handles import NotificationContext, ObserverHandle
from observable.core.registry import ObserverRegistry
from observable.core.results import Error, Ok
from observable.core.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

DATA_STEP = "data"


def _written(target: Any) -> Any:
    """The entity behind a changeset, or the target itself."""
    if hasattr(target, "changes") and hasattr(target, "data"):
        return target.data
    return target


class NotificationDispatcher:
    """Enqueues observers behind a write step and reduces the outcome.

    The write step is always named ``data``. Observers for the written entity
    type and action follow it in registry order (most recent registration
    first) and all of them run inside the storage engine's transaction, so
    the first reported failure rolls everything back.
    """

    def __init__(self, registry: ObserverRegistry) -> None:
        self.registry = registry

    def enqueue(
        self,
        unit: UnitOfWork,
        repo: Any,
        action: Action,
        entity_type: type,
        old: Optional[Any],
    ) -> UnitOfWork:
        observers = self.registry.list(entity_type, action)
        for index, handle in enumerate(observers, start=1):
            unit.add(f"observer:{index}:{handle.name}", self._observer_step(handle, repo, action, old))
        return unit

    def _observer_step(self, handle: ObserverHandle, repo: Any, action: Action, old: Optional[Any]):
        def step(_storage, changes: Dict[str, Any]):
            context = NotificationContext(repo, old, changes[DATA_STEP])
            logger.debug("Notifying %r of %s", handle, action)
            try:
                response = handle.notify(action, context)
            except Exception:
                logger.exception("Observer %r raised during %s; aborting write", handle, action)
                raise
            if response is None:
                return Ok(None)
            if isinstance(response, (Ok, Error)):
                return response
            raise InvalidObserverResponse(
                f"observer {handle.name} returned {response!r}; expected None, Ok or Error"
            )

        return step

    def notify(
        self,
        repo: Any,
        action: Action,
        target: Any,
        unit: UnitOfWork,
        **transaction_opts: Any,
    ) -> "Ok | Error":
        """Run `unit` (holding the ``data`` write step) plus every observer.

        Returns ``Ok(entity)`` on commit, otherwise ``Error(value, step)``
        where `step` is ``data`` for a rejected write or the failing
        observer's step name.
        """
        action = Action.coerce(action)
        storage = repo.storage
        old = None if action is Action.INSERT else storage.snapshot(_written(target))
        self.enqueue(unit, repo, action, type(_written(target)), old)

        outcome = storage.transaction(unit, **transaction_opts)
        if isinstance(outcome, Ok):
            return Ok(outcome.value[DATA_STEP])
        if outcome.step != DATA_STEP:
            logger.warning("Observer step %s rejected %s: %r", outcome.step, action, outcome.value)
        return Error(outcome.value, step=outcome.step)


__all__ = ["NotificationDispatcher", "DATA_STEP"]
