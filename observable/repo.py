"""Repository facade: writes that notify observers inside the same transaction.

    from observable.extensions import observable

    observable.register_observer(SubscribersObserver)
    observable.register_observer(lambda action, ctx: None, Post, "delete")

    result = observable.insert_and_notify(Changeset.cast(Post(), params, PostSchema))
    if result.ok:
        post = result.value

Every ``*_and_notify`` call returns ``Ok(entity)`` or ``Error(value, step)``.
``step`` is ``"data"`` when the write itself was rejected (``value`` is the
invalid changeset) and the failing observer's step name otherwise. Either
way nothing was persisted. Observers that raise abort the write and the
exception propagates to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from observable.core.actions import Action
from observable.core.dispatcher import DATA_STEP, NotificationDispatcher
from observable.core.errors import InvalidChangesetError, ObserverFailureError
from observable.core.handles import ObserverHandle
from observable.core.registry import Observation, ObserverRegistry
from observable.core.results import Error, Ok
from observable.core.unit_of_work import UnitOfWork
from observable.storage.engine import SqlAlchemyStorage

logger = logging.getLogger(__name__)


class ObservableRepo:
    """Flask extension owning one observer registry.

    `observers` are seeded on every `init_app`, followed by the import
    strings listed in ``OBSERVABLE_OBSERVERS``.
    """

    def __init__(self, app=None, observers: Optional[Iterable[Observation]] = None, session=None):
        self._observers = list(observers or [])
        self.storage = SqlAlchemyStorage(session)
        self._reset()
        if app is not None:
            self.init_app(app)

    def _reset(self) -> None:
        self.registry = ObserverRegistry()
        self.dispatcher = NotificationDispatcher(self.registry)

    def init_app(self, app) -> None:
        self._reset()
        app.extensions["observable"] = self
        seeded = self.init_observable([*self._observers, *app.config.get("OBSERVABLE_OBSERVERS", [])])
        logger.info("Observable repository ready with %s seeded observation(s)", len(seeded))

    def init_observable(self, observers: Iterable[Observation]) -> List[Union[bool, List[bool]]]:
        return self.registry.register_many(observers)

    def close(self) -> None:
        """Tear down the registry; registry calls raise afterwards."""
        self.registry.close()

    # Writes

    def insert_and_notify(
        self,
        target: Any,
        insert_opts: Optional[Dict[str, Any]] = None,
        transaction_opts: Optional[Dict[str, Any]] = None,
    ) -> "Ok | Error":
        unit = UnitOfWork().insert(DATA_STEP, target, **(insert_opts or {}))
        return self.dispatcher.notify(self, Action.INSERT, target, unit, **(transaction_opts or {}))

    def update_and_notify(
        self,
        changeset: Any,
        update_opts: Optional[Dict[str, Any]] = None,
        transaction_opts: Optional[Dict[str, Any]] = None,
    ) -> "Ok | Error":
        unit = UnitOfWork().update(DATA_STEP, changeset, **(update_opts or {}))
        return self.dispatcher.notify(self, Action.UPDATE, changeset, unit, **(transaction_opts or {}))

    def delete_and_notify(
        self,
        target: Any,
        delete_opts: Optional[Dict[str, Any]] = None,
        transaction_opts: Optional[Dict[str, Any]] = None,
    ) -> "Ok | Error":
        unit = UnitOfWork().delete(DATA_STEP, target, **(delete_opts or {}))
        return self.dispatcher.notify(self, Action.DELETE, target, unit, **(transaction_opts or {}))

    def insert_and_notify_or_raise(self, target: Any, insert_opts=None, transaction_opts=None) -> Any:
        return _unwrap(self.insert_and_notify(target, insert_opts, transaction_opts))

    def update_and_notify_or_raise(self, changeset: Any, update_opts=None, transaction_opts=None) -> Any:
        return _unwrap(self.update_and_notify(changeset, update_opts, transaction_opts))

    def delete_and_notify_or_raise(self, target: Any, delete_opts=None, transaction_opts=None) -> Any:
        return _unwrap(self.delete_and_notify(target, delete_opts, transaction_opts))

    def transaction(self, unit: UnitOfWork, **opts: Any):
        return self.storage.transaction(unit, **opts)

    def get(self, entity_type: type, ident: Any) -> Optional[Any]:
        return self.storage.get(entity_type, ident)

    # Observers

    def register_observer(
        self,
        handle: Any,
        entity_type: Optional[type] = None,
        action: Union[Action, str, None] = None,
    ) -> Union[bool, List[bool]]:
        """Register `handle` for one pair, or for all the pairs it declares."""
        if entity_type is None and action is None:
            return self.registry.register_all(handle)
        if entity_type is None or action is None:
            raise TypeError("entity_type and action must be given together")
        return self.registry.register(entity_type, action, handle)

    def register_observers(self, observations: Iterable[Observation]) -> List[Union[bool, List[bool]]]:
        return self.registry.register_many(observations)

    def list_observers(self, entity_type: type, action: Union[Action, str, None] = None):
        return self.registry.list(entity_type, action)

    def unregister_observers(
        self,
        entity_type: Optional[type] = None,
        action: Union[Action, str, None] = None,
    ):
        if entity_type is None:
            if action is not None:
                raise TypeError("action requires an entity_type")
            return self.registry.clear()
        return self.registry.unregister_all(entity_type, action)

    def unregister_observer(
        self, handle: Union[ObserverHandle, Any], entity_type: type, action: Union[Action, str]
    ) -> bool:
        return self.registry.unregister(entity_type, action, handle)


def _unwrap(result: "Ok | Error") -> Any:
    if isinstance(result, Ok):
        return result.value
    if result.step == DATA_STEP:
        raise InvalidChangesetError(result.step, result.value)
    raise ObserverFailureError(result.step, result.value)


__all__ = ["ObservableRepo"]
