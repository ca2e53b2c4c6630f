"""Pending changes to an entity plus the validation errors found on them."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError


class Changeset:
    def __init__(
        self,
        data: Any,
        changes: Optional[Dict[str, Any]] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.data = data
        self.changes: Dict[str, Any] = dict(changes or {})
        self.errors: Dict[str, List[str]] = {key: list(msgs) for key, msgs in (errors or {}).items()}

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def entity_type(self) -> type:
        return type(self.data)

    def add_error(self, field: str, message: str) -> "Changeset":
        self.errors.setdefault(field, []).append(message)
        return self

    def apply(self, target: Any = None) -> Any:
        """Write the pending changes onto `target` (default `data`) and return it."""
        target = self.data if target is None else target
        for key, value in self.changes.items():
            setattr(target, key, value)
        return target

    @classmethod
    def change(cls, entity: Any, **changes: Any) -> "Changeset":
        return cls(entity, changes)

    @classmethod
    def cast(cls, entity: Any, params: Mapping[str, Any], schema: Type[BaseModel]) -> "Changeset":
        """Validate `params` merged over the entity's current values.

        Only keys present in `params` become changes; pydantic errors are
        collected per field instead of raised.
        """
        fields = list(schema.model_fields)
        current = {name: getattr(entity, name, None) for name in fields}
        changes = {key: value for key, value in params.items() if key in schema.model_fields}
        changeset = cls(entity, changes)
        try:
            validated = schema.model_validate({**current, **changes})
        except ValidationError as exc:
            for error in exc.errors():
                loc = error.get("loc") or ("__root__",)
                changeset.add_error(str(loc[0]), error.get("msg", "invalid"))
            return changeset
        # Keep coerced values for the fields that actually changed.
        changeset.changes = {key: getattr(validated, key) for key in changes}
        return changeset

    def __repr__(self) -> str:
        return (
            f"Changeset({self.entity_type.__name__}, changes={self.changes!r}, "
            f"errors={self.errors!r}, valid={self.valid})"
        )


__all__ = ["Changeset"]
