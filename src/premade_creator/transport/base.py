"""Transport-neutral message types and the transport interface used by the notifier."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from premade_creator.datatypes.discord_datatypes import ChannelID, MessageID, RoleID, UserID
from premade_creator.datatypes.event_datatypes import GameEmoji


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False


@dataclass
class OutgoingMessage:
    """
    A message with one embed, as posted by the notifier.

    Attributes:
        content: Plain text sent alongside the embed (role mentions).
        title: Embed title.
        description: Embed description.
        fields: Embed fields in display order.
        reactions: Emojis to attach to the message after it is posted.
        color: RGB colour of the embed, or None for the transport default.
    """

    content: str = ""
    title: str = ""
    description: str = ""
    fields: List[EmbedField] = field(default_factory=list)
    reactions: List[GameEmoji] = field(default_factory=list)
    color: Optional[Tuple[int, int, int]] = None


@dataclass(frozen=True)
class ReactionUser:
    """A user who reacted to a message."""

    user_id: UserID
    bot: bool = False


class EventTransport(ABC):
    """Boundary between the notifier and the chat platform."""

    @abstractmethod
    async def send_message(self, channel_id: ChannelID, message: OutgoingMessage) -> MessageID:
        """
        Post ``message`` to a channel and return the new message's ID.

        Raises:
            TransportError: If the channel cannot be resolved or the post fails.
        """

    @abstractmethod
    async def fetch_reaction_users(
        self, channel_id: ChannelID, message_id: MessageID, emoji: GameEmoji
    ) -> List[ReactionUser]:
        """
        Return every user who reacted to a message with ``emoji``.

        An emoji nobody reacted with yields an empty list.

        Raises:
            TransportError: If the message or its reactions cannot be fetched.
        """

    def mention_user(self, user_id: UserID) -> str:
        return f"<@{user_id}>"

    def mention_role(self, role_id: RoleID) -> str:
        return f"<@&{role_id}>"
