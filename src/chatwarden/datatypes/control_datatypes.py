"""Result and argument types for control surface operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ClearScope(Enum):
    """Which ledgers a bulk clear wipes."""

    INTERACTIONS = "interactions"
    WARNINGS = "warnings"
    ALL = "all"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class ControlResult:
    """Outcome of a control surface call.

    Failures carry a human-readable ``error``; control operations never raise.
    """
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "ControlResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: str) -> "ControlResult":
        return cls(success=False, error=error)
