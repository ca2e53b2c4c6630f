"""Models and observers shared by the test suite."""

from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Mapped, mapped_column

from observable.core import Action, Error, NotificationContext, Observer, Ok
from observable.extensions import db

# (observer class, action, context) for every named-observer invocation.
CALLS: List[Tuple[type, Action, NotificationContext]] = []


class Post(db.Model):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str | None] = mapped_column(db.String(255))


class AuditEntry(db.Model):
    __tablename__ = "audit_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    entity: Mapped[str] = mapped_column(db.String(64), nullable=False)
    action: Mapped[str] = mapped_column(db.String(16), nullable=False)


class PostSchema(BaseModel):
    title: str


class RecordingObserver(Observer):
    def _record(self, action: Action, context: NotificationContext):
        CALLS.append((type(self), action, context))
        return Ok(context.new)

    def handle_insert(self, context):
        return self._record(Action.INSERT, context)

    def handle_update(self, context):
        return self._record(Action.UPDATE, context)

    def handle_delete(self, context):
        return self._record(Action.DELETE, context)


class ObserverOne(RecordingObserver):
    def observations(self):
        return [(Post, "insert"), (Post, "update"), (Post, "delete")]


class ObserverTwo(RecordingObserver):
    def observations(self):
        return [(Post, Action.INSERT), (Post, Action.UPDATE), (Post, Action.DELETE)]


class RaisingObserver(Observer):
    def handle_insert(self, context):
        raise RuntimeError("uh oh")

    handle_update = handle_insert
    handle_delete = handle_insert


class FailingObserver(Observer):
    def handle_insert(self, context):
        return Error("rejected")

    handle_update = handle_insert
    handle_delete = handle_insert


class AuditObserver(Observer):
    """Writes an audit row through the notifying repository's session."""

    def handle_insert(self, context):
        entry = AuditEntry(entity=type(context.new).__name__, action="insert")
        context.repo.storage.session.add(entry)
        context.repo.storage.session.flush()
        return Ok(entry)


class BadObservations(Observer):
    def observations(self):
        return [(Post, "insert"), (Post, "upsert")]


class Undeclared:
    """Looks like an observer but declares nothing."""

    def handle_insert(self, context):
        return None
