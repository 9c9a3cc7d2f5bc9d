"""
Engagement queries: top talkers and lurkers.

Both functions are pure. Group membership comes from the messaging gateway;
``ranking`` falls back to matching the group's handle inside user identities
when membership is unavailable. That fallback only approximates membership:
unrelated identities can share the digits.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Sequence, Tuple

from chatwarden.datatypes.moderation_datatypes import user_handle

RankingEntry = Tuple[str, int]


def members_by_heuristic(interactions: Mapping[str, int], group_id: str) -> List[str]:
    """Identities whose text contains the handle of ``group_id``."""
    handle = user_handle(group_id)
    if not handle:
        return []
    return [user_id for user_id in interactions if handle in user_id]


def ranking(
    interactions: Mapping[str, int],
    group_id: str,
    members: Optional[Sequence[str]] = None,
    limit: int = 10,
) -> List[RankingEntry]:
    """Most active identities of a group, highest count first.

    Ties keep ledger order (first seen first). An empty result means the group
    has no recorded activity; render it with the "no activity" text.
    """
    if members is None:
        scoped = members_by_heuristic(interactions, group_id)
    else:
        member_set = set(members)
        scoped = [user_id for user_id in interactions if user_id in member_set]

    entries = [(user_id, interactions[user_id]) for user_id in scoped]
    entries.sort(key=lambda entry: entry[1], reverse=True)
    return entries[:max(limit, 0)]


def lurkers(
    interactions: Mapping[str, int],
    members: Sequence[str],
    threshold: int = 3,
    limit: int = 10,
) -> List[RankingEntry]:
    """Members with fewer than ``threshold`` recorded messages, in membership order."""
    quiet = [(user_id, interactions.get(user_id, 0)) for user_id in members]
    return [entry for entry in quiet if entry[1] < threshold][:max(limit, 0)]
