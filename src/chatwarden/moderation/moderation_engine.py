"""
Moderation engine.

Counts every evaluated message, classifies it, and walks the sender through
the warning cycle:

    CLEAR --violation--> FIRST --violation--> SECOND --violation--> CLEAR
    (first warning)      (second warning)     (punishment)

The engine only decides; it returns the notice for the dispatcher to send.
The warning ledger is written before the notice leaves the engine, so a send
failure downstream never leaves the ledger behind.
"""

from __future__ import annotations

from chatwarden.configuration.app_configuration import ModerationSettings
from chatwarden.datatypes.moderation_datatypes import (
    ModerationOutcome,
    OutboundNotice,
    ViolationKind,
)
from chatwarden.moderation.classifier import classify
from chatwarden.moderation.notices import render_violation_notice
from chatwarden.state.state_manager import StateManager
from chatwarden.util.logger import get_logger

logger = get_logger("moderation_engine")


class ModerationEngine:
    """Per-message moderation decisions over the shared state."""

    def __init__(self, state: StateManager, settings: ModerationSettings | None = None):
        self.state = state
        self.settings = settings or ModerationSettings()

    def classify(self, text: str) -> ViolationKind:
        return classify(text, self.state.offensive_words, self.settings.link_pattern)

    def evaluate(self, group_id: str, sender_id: str, text: str) -> ModerationOutcome:
        """Evaluate one message from an activated group.

        The caller is responsible for the activation gate; this method does
        not check it again.
        """
        self.state.record_interaction(sender_id)

        tier_before = self.state.warning_tier(sender_id)
        violation = self.classify(text)
        if violation is ViolationKind.NONE:
            return ModerationOutcome(group_id, sender_id, violation, tier_before, tier_before)

        tier_after = tier_before.escalate()
        self.state.set_warning_tier(sender_id, tier_after)

        level = tier_before.notice_level
        logger.info(
            "[MODERATION ENGINE] %s from %s in %s: %s (tier %d -> %d)",
            violation, sender_id, group_id, level, tier_before, tier_after,
        )

        notice = OutboundNotice(
            group_id=group_id,
            text=render_violation_notice(level, sender_id, violation),
            mentions=[sender_id],
        )
        return ModerationOutcome(group_id, sender_id, violation, tier_before, tier_after, notice)
