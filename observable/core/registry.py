"""In-process registry of observers keyed by (entity type, action)."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from observable.core.actions import LIST_ORDER, Action
from observable.core.errors import InvalidObservation, RegistryUnavailable, UnresolvableHandle
from observable.core.handles import NamedHandle, ObserverHandle, as_handle

logger = logging.getLogger(__name__)

Key = Tuple[type, Action]
Observation = Union[Any, Tuple[Any, type, Union[Action, str]]]


def _key(entity_type: Any, action: Union[Action, str]) -> Key:
    if not isinstance(entity_type, type):
        raise InvalidObservation(f"entity type must be a class, got {entity_type!r}")
    try:
        return entity_type, Action.coerce(action)
    except ValueError as exc:
        raise InvalidObservation(str(exc)) from exc


class ObserverRegistry:
    """Read-mostly observer store.

    Writers serialize on a lock and publish a fresh mapping in which only the
    touched key holds a new tuple. Readers never lock: they grab the current
    mapping once and only ever see complete entries.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._entries: Optional[Dict[Key, Tuple[ObserverHandle, ...]]] = {}

    def _snapshot(self) -> Dict[Key, Tuple[ObserverHandle, ...]]:
        entries = self._entries
        if entries is None:
            raise RegistryUnavailable("observer registry is closed")
        return entries

    def _replace(self, key: Key, handles: Tuple[ObserverHandle, ...]) -> None:
        # Caller holds the lock.
        current = self._snapshot()
        updated = dict(current)
        if handles:
            updated[key] = handles
        else:
            updated.pop(key, None)
        self._entries = updated

    def register(self, entity_type: type, action: Union[Action, str], handle: Any) -> bool:
        key = _key(entity_type, action)
        handle = as_handle(handle)
        with self._lock:
            existing = self._snapshot().get(key, ())
            self._replace(key, (handle,) + existing)
        logger.debug("Registered %r for %s.%s", handle, key[0].__name__, key[1])
        return True

    def register_all(self, handle: Any) -> List[bool]:
        """Register a named handle for every observation it declares."""
        handle = as_handle(handle)
        if not isinstance(handle, NamedHandle):
            raise UnresolvableHandle(f"{handle!r} does not declare observations")
        declared = handle.observations()
        keys = []
        for pair in declared:
            try:
                entity_type, action = pair
            except (TypeError, ValueError) as exc:
                raise InvalidObservation(f"{handle.name} declared malformed observation {pair!r}") from exc
            keys.append(_key(entity_type, action))
        return [self.register(entity_type, action, handle) for entity_type, action in keys]

    def register_many(self, observations: Iterable[Observation]) -> List[Union[bool, List[bool]]]:
        results: List[Union[bool, List[bool]]] = []
        for observation in observations:
            if isinstance(observation, tuple):
                try:
                    handle, entity_type, action = observation
                except ValueError as exc:
                    raise InvalidObservation(
                        f"expected (handle, entity_type, action), got {observation!r}"
                    ) from exc
                results.append(self.register(entity_type, action, handle))
            else:
                results.append(self.register_all(observation))
        return results

    def list(
        self, entity_type: type, action: Union[Action, str, None] = None
    ) -> Union[List[ObserverHandle], Dict[Action, List[ObserverHandle]]]:
        entries = self._snapshot()
        if action is not None:
            return list(entries.get(_key(entity_type, action), ()))
        return {act: list(entries.get((entity_type, act), ())) for act in LIST_ORDER}

    def unregister(self, entity_type: type, action: Union[Action, str], handle: Any) -> bool:
        """Drop the first registration equal to `handle`; no-op if absent."""
        key = _key(entity_type, action)
        handle = as_handle(handle)
        with self._lock:
            handles = list(self._snapshot().get(key, ()))
            if handle in handles:
                handles.remove(handle)
                self._replace(key, tuple(handles))
        return True

    def unregister_all(
        self, entity_type: type, action: Union[Action, str, None] = None
    ) -> Union[bool, Dict[Action, bool]]:
        if action is None:
            return {act: self.unregister_all(entity_type, act) for act in LIST_ORDER}
        key = _key(entity_type, action)
        with self._lock:
            self._replace(key, ())
        return True

    def clear(self) -> None:
        with self._lock:
            self._snapshot()
            self._entries = {}

    def close(self) -> None:
        with self._lock:
            self._entries = None


__all__ = ["ObserverRegistry"]
