"""
Pytest configuration and fixtures for chatwarden tests.
"""

import sys
from pathlib import Path
from typing import List, Optional, Sequence
from unittest.mock import AsyncMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chatwarden.configuration.app_configuration import ModerationSettings  # noqa: E402
from chatwarden.datatypes.state_datatypes import GroupInfo  # noqa: E402
from chatwarden.state.state_manager import StateManager  # noqa: E402


class FakeGateway:
    """In-memory messaging gateway recording everything sent through it."""

    def __init__(self, members: Optional[dict] = None, groups: Optional[List[GroupInfo]] = None):
        self.members = members or {}
        self.groups = groups or []
        self.send_text = AsyncMock(side_effect=self._send_text)
        self.send_sticker = AsyncMock()
        self.sent: List[tuple] = []

    async def _send_text(self, group_id: str, text: str, mentions: Sequence[str] = ()) -> None:
        self.sent.append((group_id, text, list(mentions)))

    async def fetch_group_members(self, group_id: str) -> List[str]:
        if group_id not in self.members:
            raise LookupError(f"unknown group {group_id}")
        return list(self.members[group_id])

    async def list_groups(self) -> List[GroupInfo]:
        return list(self.groups)

    def normalize_user_reference(self, token: str) -> Optional[str]:
        """Full identities resolve; bare handles such as ``@alice`` do not."""
        token = token.strip()
        return token if "@" in token.lstrip("@") else None


@pytest.fixture
def settings() -> ModerationSettings:
    return ModerationSettings(offensive_words=["porra", "merda", "idiota"])


@pytest.fixture
def state(settings: ModerationSettings) -> StateManager:
    return StateManager(store=None, default_words=settings.offensive_words)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_gateway():
    return FakeGateway
