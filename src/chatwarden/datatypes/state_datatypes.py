"""
State data types: the persisted snapshot, known group metadata and the
gateway connection state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class SnapshotFormatError(ValueError):
    """Raised when a stored snapshot cannot be interpreted."""


class ConnectionState(Enum):
    """Connection status of the messaging gateway."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class GroupInfo:
    """Group metadata reported by the gateway."""

    group_id: str
    name: str
    participants: int = 0


@dataclass(slots=True)
class PersistedSnapshot:
    """Durable copy of every state container.

    Ledger entries are kept as ordered pairs so ranking ties, which follow
    first-seen order, survive a restart.
    """
    active_groups: List[str] = field(default_factory=list)
    user_interactions: List[Tuple[str, int]] = field(default_factory=list)
    user_warnings: List[Tuple[str, int]] = field(default_factory=list)
    offensive_words: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activeGroups": list(self.active_groups),
            "userInteractions": [[user_id, count] for user_id, count in self.user_interactions],
            "userWarnings": [[user_id, count] for user_id, count in self.user_warnings],
            "offensiveWords": list(self.offensive_words),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "PersistedSnapshot":
        """Parse the logical snapshot layout, rejecting anything malformed."""
        if not isinstance(payload, dict):
            raise SnapshotFormatError(f"snapshot must be an object, got {type(payload).__name__}")

        return cls(
            active_groups=_string_list(payload.get("activeGroups", []), "activeGroups"),
            user_interactions=_count_pairs(payload.get("userInteractions", []), "userInteractions"),
            user_warnings=_count_pairs(payload.get("userWarnings", []), "userWarnings"),
            offensive_words=_string_list(payload.get("offensiveWords", []), "offensiveWords"),
        )


def _string_list(value: Any, name: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise SnapshotFormatError(f"{name} must be a list of strings")
    return list(value)


def _count_pairs(value: Any, name: str) -> List[Tuple[str, int]]:
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{name} must be a list of [id, count] pairs")

    pairs: List[Tuple[str, int]] = []
    for entry in value:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise SnapshotFormatError(f"{name} entry {entry!r} is not an [id, count] pair")
        user_id, count = entry
        if not isinstance(user_id, str) or isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise SnapshotFormatError(f"{name} entry {entry!r} has an invalid id or count")
        pairs.append((user_id, count))
    return pairs
