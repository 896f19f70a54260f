"""
Correlation between start announcements and the end event.

The start event records which message it posted in a channel; the end event
looks it up to read the reactions and then releases it, so every start
announcement is processed at most once.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from premade_creator.datatypes.discord_datatypes import ChannelID, MessageID


class ReactionTracker:
    """Channel -> last posted start announcement."""

    def __init__(self) -> None:
        self._messages: Dict[ChannelID, MessageID] = {}
        self._lock = asyncio.Lock()

    async def track(self, channel_id: ChannelID, message_id: MessageID) -> None:
        """Record ``message_id`` as the channel's announcement, replacing any previous one."""
        async with self._lock:
            self._messages[ChannelID(channel_id)] = MessageID(message_id)

    async def lookup(self, channel_id: ChannelID) -> Optional[MessageID]:
        async with self._lock:
            return self._messages.get(ChannelID(channel_id))

    async def release(self, channel_id: ChannelID) -> Optional[MessageID]:
        """Forget the channel's announcement and return it, if there was one."""
        async with self._lock:
            return self._messages.pop(ChannelID(channel_id), None)

    async def count(self) -> int:
        async with self._lock:
            return len(self._messages)
