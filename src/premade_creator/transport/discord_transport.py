"""
py-cord implementation of :class:`EventTransport`.

Channels are resolved from the bot's cache first and fetched from the API as a
fallback. Every Discord failure is converted to :class:`TransportError` so the
notifier never has to know about py-cord exceptions.
"""

from __future__ import annotations

import unicodedata
from typing import Any, List, Union

import discord

from premade_creator.datatypes.discord_datatypes import ChannelID, MessageID, UserID
from premade_creator.datatypes.errors import TransportError
from premade_creator.datatypes.event_datatypes import GameEmoji
from premade_creator.transport.base import EventTransport, OutgoingMessage, ReactionUser
from premade_creator.util.logger import get_logger

logger = get_logger("discord_transport")


def to_discord_emoji(emoji: GameEmoji) -> Union[str, discord.PartialEmoji]:
    """Convert a game emoji to something ``Message.add_reaction`` accepts."""
    if emoji.id is None:
        return emoji.name
    return discord.PartialEmoji(name=emoji.name, id=emoji.id, animated=emoji.animated)


def build_embed(message: OutgoingMessage) -> discord.Embed:
    """Build the py-cord embed for an outgoing message."""
    embed = discord.Embed(title=message.title, description=message.description or None)
    if message.color is not None:
        embed.color = discord.Color.from_rgb(*message.color)
    for embed_field in message.fields:
        embed.add_field(name=embed_field.name, value=embed_field.value, inline=embed_field.inline)
    return embed


def normalize_unicode_emoji(text: str) -> str:
    """NFC form without text/emoji variation selectors."""
    return unicodedata.normalize("NFC", text).replace("\ufe0f", "").replace("\ufe0e", "")


def reaction_matches(reaction_emoji: Any, emoji: GameEmoji) -> bool:
    """Custom emojis match by ID, unicode emojis by normalized text."""
    reaction_id = getattr(reaction_emoji, "id", None)
    if emoji.is_custom:
        return reaction_id == emoji.id
    if reaction_id is not None:
        return False
    text = reaction_emoji if isinstance(reaction_emoji, str) else getattr(reaction_emoji, "name", None)
    return text is not None and normalize_unicode_emoji(text) == normalize_unicode_emoji(emoji.name)


class DiscordTransport(EventTransport):
    """Posts notifier messages and reads reactions through a ``discord.Bot``."""

    def __init__(self, bot: discord.Bot) -> None:
        self.bot = bot

    async def _resolve_channel(self, channel_id: ChannelID) -> discord.abc.Messageable:
        await self.bot.wait_until_ready()
        channel = self.bot.get_channel(channel_id.to_int())
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id.to_int())
            except (discord.HTTPException, discord.ClientException) as exc:
                raise TransportError(f"Couldn't resolve channel {channel_id}: {exc}") from exc
        if not isinstance(channel, discord.abc.Messageable):
            raise TransportError(f"Channel {channel_id} cannot receive messages")
        return channel

    async def send_message(self, channel_id: ChannelID, message: OutgoingMessage) -> MessageID:
        channel = await self._resolve_channel(ChannelID(channel_id))
        try:
            sent = await channel.send(content=message.content or None, embed=build_embed(message))
        except (discord.HTTPException, discord.ClientException) as exc:
            raise TransportError(f"Couldn't send message to channel {channel_id}: {exc}") from exc

        for emoji in message.reactions:
            try:
                await sent.add_reaction(to_discord_emoji(emoji))
            except (discord.HTTPException, discord.ClientException) as exc:
                logger.warning("[DISCORD TRANSPORT] Couldn't add reaction %s to message %s: %s", emoji, sent.id, exc)

        return MessageID.from_message(sent)

    async def fetch_reaction_users(
        self, channel_id: ChannelID, message_id: MessageID, emoji: GameEmoji
    ) -> List[ReactionUser]:
        channel = await self._resolve_channel(ChannelID(channel_id))
        try:
            message = await channel.fetch_message(MessageID(message_id).to_int())
        except (discord.HTTPException, discord.ClientException) as exc:
            raise TransportError(f"Couldn't fetch message {message_id} in channel {channel_id}: {exc}") from exc

        reaction = next((r for r in message.reactions if reaction_matches(r.emoji, emoji)), None)
        if reaction is None:
            return []

        try:
            return [ReactionUser(UserID.from_user(user), bool(user.bot)) async for user in reaction.users()]
        except (discord.HTTPException, discord.ClientException) as exc:
            raise TransportError(f"Couldn't fetch {emoji} reactions on message {message_id}: {exc}") from exc
