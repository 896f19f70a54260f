"""
Composition and delivery of the start and end notifications.

Start: one announcement in the configured channel listing every game with its
emoji, mentioning the configured roles, with one reaction per game attached so
players only have to click. End: for every game, the non-bot users who reacted
with its emoji on the tracked announcement, posted to the game's own channel.

Delivery is best effort. Transport failures are logged and skipped, never
retried.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from premade_creator.configuration.app_configuration import DEFAULT_EMBED_COLOR, DEFAULT_FIELD_BUDGET
from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.datatypes.discord_datatypes import GuildID, RoleID
from premade_creator.datatypes.errors import ConfigNotFound, ItemTooLarge, TransportError
from premade_creator.datatypes.event_datatypes import GameInfo, GuildEventConfig
from premade_creator.notifications.reaction_tracker import ReactionTracker
from premade_creator.transport.base import EmbedField, EventTransport, OutgoingMessage
from premade_creator.util.logger import get_logger
from premade_creator.util.text_batcher import fold_joined

logger = get_logger("notifier")

START_TITLE = "Pick your games!"
START_DESCRIPTION = "\n".join([
    "Today, these following games are available!",
    "React with the corresponding emoji to participate!\n",
])
START_FIELD_NAME = "Games"

END_TITLE = "Today's players"
END_DESCRIPTION = "The following players want to play:"


def continued(name: str) -> str:
    return f"{name} (cont)"


def batched_fields(name: str, values: List[str]) -> List[EmbedField]:
    """First batch under ``name``, every later one under ``"{name} (cont)"``."""
    return [
        EmbedField(name=name if index == 0 else continued(name), value=value)
        for index, value in enumerate(values)
    ]


class EventNotifier:
    """Posts start and end notifications for a guild's committed configuration."""

    def __init__(
        self,
        config_store: EventConfigStore,
        tracker: ReactionTracker,
        transport: EventTransport,
        field_budget: int = DEFAULT_FIELD_BUDGET,
        embed_color: Tuple[int, int, int] = DEFAULT_EMBED_COLOR,
    ) -> None:
        self.config_store = config_store
        self.tracker = tracker
        self.transport = transport
        self.field_budget = field_budget
        self.embed_color = embed_color

    def role_mentions(self, role_ids: Optional[List[RoleID]]) -> str:
        if not role_ids:
            return ""
        return ", ".join(self.transport.mention_role(role_id) for role_id in role_ids)

    # -------- Start --------
    def build_start_message(self, config: GuildEventConfig) -> Optional[OutgoingMessage]:
        """Compose the start announcement, or None when there are no games.

        Raises:
            ItemTooLarge: If a single game line exceeds the field budget.
        """
        lines = [f"{game.emoji} -> {game.name}" for game in config.games]
        batches = fold_joined(self.field_budget, lines, "\n")
        if not batches:
            return None

        return OutgoingMessage(
            content=self.role_mentions(config.role_ids),
            title=START_TITLE,
            description=START_DESCRIPTION,
            fields=batched_fields(START_FIELD_NAME, batches),
            reactions=[game.emoji for game in config.games],
            color=self.embed_color,
        )

    async def process_start(self, guild_id: GuildID) -> None:
        """Post the start announcement and remember it for the end event.

        Raises:
            ItemTooLarge: If a game line exceeds the field budget. Nothing is
                posted in that case.
        """
        logger.info("[NOTIFIER] Starting the premade creation process in guild %s", guild_id)
        try:
            config = await self.config_store.require(guild_id)
        except ConfigNotFound:
            logger.warning("[NOTIFIER] Start event fired for guild %s but no configuration was found", guild_id)
            return

        message = self.build_start_message(config)
        if message is None:
            logger.info("[NOTIFIER] Guild %s has no games configured; nothing to announce", guild_id)
            return

        try:
            message_id = await self.transport.send_message(config.channel_id, message)
        except TransportError as exc:
            logger.warning("[NOTIFIER] Couldn't send the start announcement to guild %s: %s", guild_id, exc)
            await self.tracker.release(config.channel_id)
            return

        await self.tracker.track(config.channel_id, message_id)
        logger.debug("[NOTIFIER] Tracking message %s in channel %s", message_id, config.channel_id)

    # -------- End --------
    def build_end_message(self, game: GameInfo, mentions: List[str]) -> Optional[OutgoingMessage]:
        """Compose one game's result message, or None when nobody reacted.

        Raises:
            ItemTooLarge: If a single mention exceeds the field budget.
        """
        batches = fold_joined(self.field_budget, mentions, ", ")
        if not batches:
            return None

        return OutgoingMessage(
            content=self.role_mentions(game.role_ids),
            title=END_TITLE,
            description=END_DESCRIPTION,
            fields=batched_fields(f"{game.emoji} {game.name}", batches),
            color=self.embed_color,
        )

    async def process_end(self, guild_id: GuildID) -> None:
        """Post one result message per game, then forget the announcement.

        Runs at most once per announcement: the tracked entry is released even
        when every post fails, so a second call only logs a warning.
        """
        logger.info("[NOTIFIER] Ending the premade creation process in guild %s", guild_id)
        try:
            config = await self.config_store.require(guild_id)
        except ConfigNotFound:
            logger.warning("[NOTIFIER] End event fired for guild %s but no configuration was found", guild_id)
            return

        message_id = await self.tracker.lookup(config.channel_id)
        if message_id is None:
            logger.warning("[NOTIFIER] Initial message not found for guild %s", guild_id)
            return

        try:
            for game in config.games:
                await self._report_game(guild_id, config, message_id, game)
        finally:
            await self.tracker.release(config.channel_id)

    async def _report_game(self, guild_id: GuildID, config: GuildEventConfig, message_id, game: GameInfo) -> None:
        try:
            users = await self.transport.fetch_reaction_users(config.channel_id, message_id, game.emoji)
        except TransportError as exc:
            logger.warning("[NOTIFIER] Couldn't fetch %s reactions in guild %s: %s", game.name, guild_id, exc)
            return

        mentions = [self.transport.mention_user(user.user_id) for user in users if not user.bot]
        try:
            message = self.build_end_message(game, mentions)
        except ItemTooLarge as exc:
            logger.error("[NOTIFIER] Couldn't list players for %s in guild %s: %s", game.name, guild_id, exc)
            return

        if message is None:
            logger.debug("[NOTIFIER] Nobody reacted for %s in guild %s", game.name, guild_id)
            return

        try:
            await self.transport.send_message(game.channel_id, message)
        except TransportError as exc:
            logger.warning("[NOTIFIER] The %s message couldn't be sent to guild %s: %s", game.name, guild_id, exc)
