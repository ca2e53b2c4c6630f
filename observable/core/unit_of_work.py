"""Ordered, named steps that a storage engine runs in one transaction."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Tuple

from observable.core.results import Error, Ok

# A step receives the storage engine and the results of the steps before it.
Step = Callable[[Any, Dict[str, Any]], "Ok | Error"]


class UnitOfWork:
    def __init__(self) -> None:
        self._steps: List[Tuple[str, Step]] = []

    def add(self, name: str, step: Step) -> "UnitOfWork":
        if name in self.names():
            raise ValueError(f"step {name!r} is already part of this unit of work")
        self._steps.append((name, step))
        return self

    run = add

    def insert(self, name: str, target: Any, **opts) -> "UnitOfWork":
        return self.add(name, lambda storage, _changes: storage.insert(target, **opts))

    def update(self, name: str, changeset: Any, **opts) -> "UnitOfWork":
        return self.add(name, lambda storage, _changes: storage.update(changeset, **opts))

    def delete(self, name: str, target: Any, **opts) -> "UnitOfWork":
        return self.add(name, lambda storage, _changes: storage.delete(target, **opts))

    def names(self) -> List[str]:
        return [name for name, _ in self._steps]

    def __iter__(self) -> Iterator[Tuple[str, Step]]:
        return iter(list(self._steps))

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"UnitOfWork({self.names()!r})"


__all__ = ["UnitOfWork", "Step"]
