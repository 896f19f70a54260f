"""Shared in-memory fakes for notifier and scheduler tests."""

from premade_creator.datatypes.discord_datatypes import MessageID
from premade_creator.datatypes.errors import TransportError
from premade_creator.transport.base import EventTransport


class FakeTransport(EventTransport):
    def __init__(self) -> None:
        self.sent = []
        self.reactions = {}
        self.fail_send_to = set()
        self.fail_fetch_for = set()
        self.fetches = []
        self._next_id = 1000

    async def send_message(self, channel_id, message):
        if channel_id in self.fail_send_to:
            raise TransportError(f"cannot send to {channel_id}")
        self.sent.append((channel_id, message))
        self._next_id += 1
        return MessageID(self._next_id)

    async def fetch_reaction_users(self, channel_id, message_id, emoji):
        self.fetches.append((channel_id, message_id, str(emoji)))
        if str(emoji) in self.fail_fetch_for:
            raise TransportError(f"cannot fetch {emoji}")
        return list(self.reactions.get(str(emoji), []))
