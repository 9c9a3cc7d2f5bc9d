"""
Moderation data types.

This module defines the violation kinds produced by the classifier, the
three-tier warning cycle with its explicit transition table, and the message
and notice structures passed between the gateway, dispatcher and engine.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional


class ViolationKind(Enum):
    """Outcome of classifying one message text."""

    NONE = "none"
    OFFENSIVE_WORD = "offensive-word"
    UNAUTHORIZED_LINK = "unauthorized-link"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Human-readable description used inside warning notices."""
        return VIOLATION_LABELS[self]


VIOLATION_LABELS: dict[ViolationKind, str] = {
    ViolationKind.NONE: "",
    ViolationKind.OFFENSIVE_WORD: "palavra ofensiva",
    ViolationKind.UNAUTHORIZED_LINK: "link não autorizado",
}


class WarningTier(IntEnum):
    """Unresolved-warning stage of a user. The value is what the warning ledger stores."""

    CLEAR = 0
    FIRST = 1
    SECOND = 2

    @classmethod
    def from_count(cls, count: int) -> "WarningTier":
        """Map a raw ledger value onto a tier; anything past the last tier is SECOND."""
        if count <= 0:
            return cls.CLEAR
        if count == 1:
            return cls.FIRST
        return cls.SECOND

    def escalate(self) -> "WarningTier":
        """Tier the user lands on after one more violation."""
        return ESCALATION[self]

    @property
    def notice_level(self) -> "NoticeLevel":
        """Notice emitted when a violation happens while the user is at this tier."""
        return NOTICE_FOR_TIER[self]


class NoticeLevel(Enum):
    """Severity of the notice sent for a violation."""

    FIRST_WARNING = "first_warning"
    SECOND_WARNING = "second_warning"
    PUNISHMENT = "punishment"

    def __str__(self) -> str:
        return self.value


# SECOND wraps around to CLEAR: the punishment resets the cycle.
ESCALATION: dict[WarningTier, WarningTier] = {
    WarningTier.CLEAR: WarningTier.FIRST,
    WarningTier.FIRST: WarningTier.SECOND,
    WarningTier.SECOND: WarningTier.CLEAR,
}

NOTICE_FOR_TIER: dict[WarningTier, NoticeLevel] = {
    WarningTier.CLEAR: NoticeLevel.FIRST_WARNING,
    WarningTier.FIRST: NoticeLevel.SECOND_WARNING,
    WarningTier.SECOND: NoticeLevel.PUNISHMENT,
}


@dataclass(slots=True)
class OutboundNotice:
    """Text message to send to a group, with the identities it mentions."""

    group_id: str
    text: str
    mentions: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ModerationOutcome:
    """Result of evaluating one message.

    Attributes:
        group_id: Group the message was posted in
        sender_id: Author of the message
        violation: Classifier verdict
        tier_before: Warning tier before this message
        tier_after: Warning tier after this message (equal to tier_before when clean)
        notice: Notice to send, or None when the message was clean
    """
    group_id: str
    sender_id: str
    violation: ViolationKind
    tier_before: WarningTier
    tier_after: WarningTier
    notice: Optional[OutboundNotice] = None

    @property
    def is_violation(self) -> bool:
        return self.violation is not ViolationKind.NONE


ImageFetcher = Callable[[], Awaitable[bytes]]


@dataclass(slots=True)
class InboundMessage:
    """Gateway-neutral view of an incoming chat message.

    Attributes:
        group_id: Chat the message was posted in (a group or a direct chat)
        sender_id: Author identity
        text: Message text or image caption ("" when absent)
        is_group: False for direct chats, which are never moderated
        has_image: Whether an image is attached
        mentions: Identities mentioned in the message, in order
        fetch_image: Coroutine factory returning the attached image bytes
    """
    group_id: str
    sender_id: str
    text: str = ""
    is_group: bool = True
    has_image: bool = False
    mentions: List[str] = field(default_factory=list)
    fetch_image: Optional[ImageFetcher] = None


def user_handle(identity: str) -> str:
    """Return the part of an identity shown after ``@`` in mention text."""
    return identity.split("@", 1)[0]
