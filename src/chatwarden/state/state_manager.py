"""
In-memory moderation state with write-through persistence.

Responsibilities:
- Own the group activation registry, interaction ledger, warning ledger and
  word blocklist
- Funnel every mutation through an accessor that schedules a snapshot flush
- Restore state from the snapshot store at startup

Persistence is best effort: a failed write is logged and the in-memory state
stays authoritative until the next successful save.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

from chatwarden.configuration.app_configuration import DEFAULT_OFFENSIVE_WORDS
from chatwarden.database.database import SnapshotStore
from chatwarden.datatypes.moderation_datatypes import WarningTier
from chatwarden.datatypes.state_datatypes import ConnectionState, GroupInfo, PersistedSnapshot
from chatwarden.util.logger import get_logger

logger = get_logger("state_manager")


class StateManager:
    """
    Owner of every piece of moderation state.

    The moderation engine, the dispatcher and the control surface all hold a
    reference to one instance; none of them touches the containers directly.
    """

    def __init__(self, store: Optional[SnapshotStore] = None, default_words: Optional[Iterable[str]] = None):
        self.store = store
        self.default_words: List[str] = list(default_words if default_words is not None else DEFAULT_OFFENSIVE_WORDS)

        # dicts keep first-seen order, which ranking ties rely on
        self._active_groups: Dict[str, None] = {}
        self._interactions: Dict[str, int] = {}
        self._warnings: Dict[str, int] = {}
        self._offensive_words: List[str] = list(self.default_words)

        # Runtime-only state, never persisted
        self.connection_state: ConnectionState = ConnectionState.DISCONNECTED
        self.known_groups: Dict[str, GroupInfo] = {}

        self._persist_lock = asyncio.Lock()
        self._dirty = False
        self._writer: Optional[asyncio.Task] = None

    # --- Group activation registry ---
    def is_active(self, group_id: str) -> bool:
        return group_id in self._active_groups

    def activate(self, group_id: str) -> None:
        if group_id in self._active_groups:
            return
        self._active_groups[group_id] = None
        logger.info("[STATE MANAGER] Moderation activated for group %s", group_id)
        self.schedule_save()

    def deactivate(self, group_id: str) -> None:
        if group_id not in self._active_groups:
            return
        del self._active_groups[group_id]
        logger.info("[STATE MANAGER] Moderation deactivated for group %s", group_id)
        self.schedule_save()

    def set_group_active(self, group_id: str, active: bool) -> None:
        if active:
            self.activate(group_id)
        else:
            self.deactivate(group_id)

    @property
    def active_groups(self) -> List[str]:
        return list(self._active_groups)

    # --- Interaction ledger ---
    def record_interaction(self, user_id: str) -> int:
        """Count one more message from ``user_id`` and return the new total."""
        count = self._interactions.get(user_id, 0) + 1
        self._interactions[user_id] = count
        self.schedule_save()
        return count

    def interaction_count(self, user_id: str) -> int:
        return self._interactions.get(user_id, 0)

    @property
    def interactions(self) -> Dict[str, int]:
        """Copy of the interaction ledger, in first-seen order."""
        return dict(self._interactions)

    def clear_interactions(self) -> None:
        self._interactions.clear()
        logger.info("[STATE MANAGER] Interaction ledger cleared")
        self.schedule_save()

    # --- Warning ledger ---
    def warning_tier(self, user_id: str) -> WarningTier:
        return WarningTier.from_count(self._warnings.get(user_id, 0))

    def set_warning_tier(self, user_id: str, tier: WarningTier) -> None:
        self._warnings[user_id] = int(tier)
        self.schedule_save()

    @property
    def warnings(self) -> Dict[str, int]:
        return dict(self._warnings)

    def clear_warnings(self, user_id: str) -> bool:
        """Drop the warnings of one user. Returns whether the user had an entry."""
        existed = self._warnings.pop(user_id, None) is not None
        logger.info("[STATE MANAGER] Warnings cleared for user %s", user_id)
        self.schedule_save()
        return existed

    def clear_warnings_all(self) -> None:
        self._warnings.clear()
        logger.info("[STATE MANAGER] Warning ledger cleared")
        self.schedule_save()

    def clear_all(self) -> None:
        """Wipe both ledgers; the registry and the blocklist are untouched."""
        self._interactions.clear()
        self._warnings.clear()
        logger.info("[STATE MANAGER] Interaction and warning ledgers cleared")
        self.schedule_save()

    # --- Word blocklist ---
    @property
    def offensive_words(self) -> List[str]:
        return list(self._offensive_words)

    def set_offensive_words(self, words: Iterable[str]) -> None:
        self._offensive_words = list(words)
        logger.info("[STATE MANAGER] Blocklist updated (%d words)", len(self._offensive_words))
        self.schedule_save()

    # --- Runtime-only state ---
    def set_connection_state(self, state: ConnectionState) -> None:
        if state is not self.connection_state:
            logger.info("[STATE MANAGER] Connection state %s -> %s", self.connection_state, state)
        self.connection_state = state

    def set_known_groups(self, groups: Iterable[GroupInfo]) -> None:
        self.known_groups = {group.group_id: group for group in groups}
        logger.info("[STATE MANAGER] %d groups loaded", len(self.known_groups))

    # --- Snapshot ---
    def snapshot(self) -> PersistedSnapshot:
        return PersistedSnapshot(
            active_groups=list(self._active_groups),
            user_interactions=list(self._interactions.items()),
            user_warnings=list(self._warnings.items()),
            offensive_words=list(self._offensive_words),
        )

    def restore(self, snapshot: PersistedSnapshot) -> None:
        self._active_groups = dict.fromkeys(snapshot.active_groups)
        self._interactions = dict(snapshot.user_interactions)
        self._warnings = dict(snapshot.user_warnings)
        self._offensive_words = list(snapshot.offensive_words)

    def reset(self) -> None:
        """Return to empty ledgers and the default blocklist."""
        self.restore(PersistedSnapshot(offensive_words=list(self.default_words)))

    # --- Persistence ---
    def schedule_save(self) -> bool:
        """
        Mark the state dirty and make sure a writer is running.

        Mutations coalesce: at most one writer task exists, and each pass it
        makes writes the snapshot as it is at that moment, so the last write
        always holds the latest state. Returns False when nothing could be
        scheduled (no store or no running event loop).
        """
        if self.store is None:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[STATE MANAGER] Cannot persist state: no running event loop")
            return False

        self._dirty = True
        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._flush_dirty())
            self._writer.add_done_callback(self._on_writer_done)
        return True

    async def _flush_dirty(self) -> None:
        while self._dirty:
            self._dirty = False
            await self._write(self.snapshot())

    @staticmethod
    def _on_writer_done(task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("[STATE MANAGER] State persist task was cancelled")

    async def save(self) -> bool:
        """Write the current state now. Failures are logged and reported as False."""
        if self.store is None:
            logger.warning("[STATE MANAGER] No state store configured; nothing saved")
            return False
        return await self._write(self.snapshot())

    async def _write(self, snapshot: PersistedSnapshot) -> bool:
        assert self.store is not None
        async with self._persist_lock:
            try:
                await self.store.write_snapshot(snapshot)
            except Exception as exc:
                logger.error("[STATE MANAGER] Failed to persist state: %s", exc)
                return False
        logger.debug(
            "[STATE MANAGER] State persisted (%d groups, %d talkers, %d warned)",
            len(snapshot.active_groups), len(snapshot.user_interactions), len(snapshot.user_warnings),
        )
        return True

    async def load(self) -> bool:
        """
        Restore state from the store.

        An absent snapshot leaves the defaults in place. An unreadable or
        corrupt one is logged and also falls back to defaults; startup never
        fails here. Returns False only in the corrupt/unreadable case.
        """
        self.reset()
        if self.store is None:
            return True

        try:
            snapshot = await self.store.read_snapshot()
        except Exception as exc:
            logger.error("[STATE MANAGER] Stored state is unreadable, starting empty: %s", exc)
            return False

        if snapshot is None:
            logger.info("[STATE MANAGER] No stored state found, starting empty")
            return True

        self.restore(snapshot)
        logger.info(
            "[STATE MANAGER] State loaded: %d active groups, %d talkers, %d warned users, %d words",
            len(self._active_groups), len(self._interactions), len(self._warnings), len(self._offensive_words),
        )
        return True

    async def shutdown(self) -> None:
        """Wait for the pending write, if any, during shutdown."""
        writer = self._writer
        if writer is not None and not writer.done():
            await asyncio.gather(writer, return_exceptions=True)
        self._writer = None
        logger.info("[STATE MANAGER] State manager shutdown complete")
