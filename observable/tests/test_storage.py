"""Tests for the SQLAlchemy storage adapter and unit-of-work transactions."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

from observable.core import Error, Ok, TransactionFailure, UnitOfWork
from observable.extensions import db
from observable.storage import Changeset, SqlAlchemyStorage
from observable.tests.support import AuditEntry, Post, PostSchema


@pytest.fixture
def storage(app):
    return SqlAlchemyStorage()


def test_unit_of_work_rejects_duplicate_names():
    unit = UnitOfWork().run("first", lambda storage, changes: Ok(1))

    with pytest.raises(ValueError):
        unit.run("first", lambda storage, changes: Ok(2))
    assert unit.names() == ["first"]
    assert len(unit) == 1


def test_insert_rejects_invalid_changeset_without_touching_session(storage):
    changeset = Changeset.cast(Post(), {}, PostSchema)

    result = storage.insert(changeset)

    assert result == Error(changeset)
    assert not db.session.new


def test_insert_maps_constraint_violation_to_error(storage):
    unit = UnitOfWork().insert("entry", AuditEntry(entity=None, action="insert"))

    outcome = storage.transaction(unit)

    assert isinstance(outcome, TransactionFailure)
    assert outcome.step == "entry"
    assert "constraint" in outcome.value.errors
    assert AuditEntry.query.count() == 0


def test_transaction_commits_every_step(storage):
    unit = (
        UnitOfWork()
        .insert("post", Post(title="one"))
        .run("count", lambda storage, changes: Ok(changes["post"].id))
    )

    outcome = storage.transaction(unit)

    assert isinstance(outcome, Ok)
    assert outcome.value["count"] == outcome.value["post"].id
    db.session.expunge_all()
    assert db.session.get(Post, outcome.value["post"].id).title == "one"


def test_failed_step_rolls_back_earlier_steps(storage):
    unit = (
        UnitOfWork()
        .insert("post", Post(title="doomed"))
        .run("veto", lambda storage, changes: Error("nope"))
        .run("never", lambda storage, changes: pytest.fail("ran after failure"))
    )

    outcome = storage.transaction(unit)

    assert isinstance(outcome, TransactionFailure)
    assert outcome.step == "veto"
    assert outcome.value == "nope"
    assert "post" in outcome.changes
    assert Post.query.count() == 0


def test_step_with_unexpected_result_raises_and_rolls_back(storage):
    unit = UnitOfWork().insert("post", Post()).run("bad", lambda storage, changes: "oops")

    with pytest.raises(TypeError):
        storage.transaction(unit)
    assert Post.query.count() == 0


def test_nested_transaction_only_undoes_its_own_work(storage):
    db.session.add(Post(title="outer"))
    db.session.flush()

    unit = UnitOfWork().insert("post", Post(title="inner")).run("veto", lambda storage, changes: Error("x"))

    outcome = storage.transaction(unit)

    assert isinstance(outcome, TransactionFailure)
    assert [post.title for post in Post.query.all()] == ["outer"]


def test_nested_transaction_joined_explicitly_leaves_commit_to_caller(storage):
    with db.session.begin():
        outcome = storage.transaction(UnitOfWork().insert("post", Post(title="inner")))
        assert isinstance(outcome, Ok)
        assert db.session().in_transaction()

    assert Post.query.count() == 1


def test_update_and_delete(storage):
    post = Post(title="before")
    storage.transaction(UnitOfWork().insert("post", post))

    assert storage.transaction(UnitOfWork().update("post", Changeset.change(post, title="after"))) == Ok(
        {"post": post}
    )
    assert storage.get(Post, post.id).title == "after"

    storage.transaction(UnitOfWork().delete("post", post))
    assert storage.get(Post, post.id) is None


def test_snapshot_is_a_detached_copy(storage):
    post = Post(title="original")
    storage.transaction(UnitOfWork().insert("post", post))

    copy = storage.snapshot(post)
    post.title = "changed"

    assert copy is not post
    assert copy.id == post.id
    assert copy.title == "original"
    assert copy not in db.session
    assert storage.snapshot(None) is None
