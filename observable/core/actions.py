"""Lifecycle actions an observer can subscribe to."""

from __future__ import annotations

from enum import Enum


class Action(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def coerce(cls, value: "Action | str") -> "Action":
        """Accept an Action or its string value ("insert", "UPDATE", ...)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise ValueError(f"unknown action: {value!r}")

    def __str__(self) -> str:
        return self.value


# Introspection order used when listing every action of an entity type.
LIST_ORDER = (Action.DELETE, Action.UPDATE, Action.INSERT)

__all__ = ["Action", "LIST_ORDER"]
