"""Result values passed between storage steps, observers and callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Ok:
    value: Any = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Error:
    """A failed step. `step` names the unit-of-work step that produced it."""

    value: Any = None
    step: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class TransactionFailure:
    """Outcome of a rolled back unit of work."""

    step: str
    value: Any
    changes: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


__all__ = ["Ok", "Error", "TransactionFailure"]
