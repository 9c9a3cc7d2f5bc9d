"""Capabilities the core needs from a chat network."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from chatwarden.datatypes.state_datatypes import GroupInfo


@runtime_checkable
class MessagingGateway(Protocol):
    """Outbound side of a chat network connection.

    Implementations raise on transport failure; the dispatcher logs those
    errors and never rolls state back because of them.
    """

    async def send_text(self, group_id: str, text: str, mentions: Sequence[str] = ()) -> None:
        """Post ``text`` to a group, turning ``@<handle>`` of each mentioned identity into a mention."""
        ...

    async def send_sticker(self, group_id: str, image_bytes: bytes) -> None:
        ...

    async def fetch_group_members(self, group_id: str) -> List[str]:
        """Identities of the group's human members, in the network's member order."""
        ...

    async def list_groups(self) -> List[GroupInfo]:
        ...

    def normalize_user_reference(self, token: str) -> Optional[str]:
        """Turn a user reference typed in chat into an identity, or None if it is not one."""
        ...
