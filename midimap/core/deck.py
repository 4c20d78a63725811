"""Deck inference from mapping group identifiers."""

from __future__ import annotations

import re

_CHANNEL_GROUP_RE = re.compile(r"\[Channel(\d+)\]")


def resolve_deck(group: str) -> int | None:
    """Return the deck number encoded in ``[ChannelN]`` groups, else None."""
    match = _CHANNEL_GROUP_RE.search(group)
    if not match:
        return None
    return int(match.group(1))
