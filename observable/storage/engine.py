"""SQLAlchemy-backed storage primitives used by the notifying repository."""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, NoInspectionAvailable
from sqlalchemy.orm import Session, scoped_session
from sqlalchemy.orm.session import SessionTransactionOrigin

from observable.core.results import Error, Ok, TransactionFailure
from observable.core.unit_of_work import UnitOfWork
from observable.storage.changeset import Changeset

logger = logging.getLogger(__name__)


class _StepFailed(Exception):
    def __init__(self, step: str, value: Any) -> None:
        super().__init__(step)
        self.step = step
        self.value = value


def as_changeset(target: Any) -> Changeset:
    return target if isinstance(target, Changeset) else Changeset(target)


class SqlAlchemyStorage:
    """Insert/update/delete and unit-of-work transactions over a session.

    Writes flush but never commit; committing is owned by `transaction`.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self) -> Session:
        session = self._session
        if session is None:
            from observable.extensions import db  # local import to avoid circulars

            session = db.session
        # Resolve scoped sessions to the current thread's Session.
        return session() if isinstance(session, scoped_session) else session

    def insert(self, target: Any, *, flush: bool = True) -> "Ok | Error":
        changeset = as_changeset(target)
        if not changeset.valid:
            return Error(changeset)
        entity = changeset.apply()
        self.session.add(entity)
        return self._flush(changeset, entity, flush)

    def update(self, target: Any, *, flush: bool = True) -> "Ok | Error":
        changeset = as_changeset(target)
        if not changeset.valid:
            return Error(changeset)
        session = self.session
        entity = changeset.data
        # Changes land on the session's instance; a detached caller copy stays as given.
        if entity not in session:
            entity = session.merge(entity)
        changeset.apply(entity)
        return self._flush(changeset, entity, flush)

    def delete(self, target: Any, *, flush: bool = True) -> "Ok | Error":
        changeset = as_changeset(target)
        if not changeset.valid:
            return Error(changeset)
        entity = changeset.data
        self.session.delete(entity)
        return self._flush(changeset, entity, flush)

    def _flush(self, changeset: Changeset, entity: Any, flush: bool) -> "Ok | Error":
        if not flush:
            return Ok(entity)
        try:
            self.session.flush()
        except IntegrityError as exc:
            changeset.add_error("constraint", str(exc.orig))
            return Error(changeset)
        return Ok(entity)

    def transaction(self, unit: UnitOfWork, commit: Optional[bool] = None) -> "Ok | TransactionFailure":
        """Run every step of `unit` atomically.

        Without an open transaction the unit gets its own and commits it.
        With one open the unit runs in a SAVEPOINT, so a failure only undoes
        this unit. The surrounding transaction is then committed when
        `commit` is true, or when `commit` is None and the session began it
        implicitly (autobegin) rather than the caller via `begin()`.
        Exceptions raised by a step roll back and propagate.
        """
        session = self.session
        nested = session.in_transaction()
        if commit is None:
            commit = (
                nested
                and not session.in_nested_transaction()
                and session.get_transaction().origin is SessionTransactionOrigin.AUTOBEGIN
            )
        changes: Dict[str, Any] = {}
        try:
            with session.begin_nested() if nested else session.begin():
                for name, step in unit:
                    result = step(self, changes)
                    if isinstance(result, Error):
                        raise _StepFailed(name, result.value)
                    if not isinstance(result, Ok):
                        raise TypeError(f"step {name!r} returned {result!r}; expected Ok or Error")
                    changes[name] = result.value
        except _StepFailed as failure:
            logger.info("Rolled back unit of work at step %s", failure.step)
            return TransactionFailure(failure.step, failure.value, changes)
        if nested and commit:
            session.commit()
        return Ok(changes)

    def snapshot(self, entity: Any) -> Optional[Any]:
        """Detached copy of an entity's column values."""
        if entity is None:
            return None
        try:
            mapper = sa.inspect(type(entity))
        except NoInspectionAvailable:
            return copy.copy(entity)
        clone = mapper.class_manager.new_instance()
        for attr in mapper.column_attrs:
            setattr(clone, attr.key, getattr(entity, attr.key))
        return clone

    def get(self, entity_type: type, ident: Any) -> Optional[Any]:
        return self.session.get(entity_type, ident)


__all__ = ["SqlAlchemyStorage", "as_changeset"]
