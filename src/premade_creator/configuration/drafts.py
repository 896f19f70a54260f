"""
In-memory draft configurations.

Operators never edit the committed configuration directly. Every command
mutates a per-guild draft, and ``commit`` validates the draft and hands a
copy to :class:`EventConfigStore`. Drafts are lost on restart.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Optional

from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from premade_creator.datatypes.errors import NoDraft
from premade_creator.datatypes.event_datatypes import GameInfo, GuildEventConfig
from premade_creator.scheduler.cron import CronSchedule
from premade_creator.util.logger import get_logger

logger = get_logger("drafts")


class DraftStore:
    """Per-guild staging area in front of :class:`EventConfigStore`."""

    def __init__(self, config_store: EventConfigStore) -> None:
        self.config_store = config_store
        self._drafts: Dict[GuildID, GuildEventConfig] = {}
        self._lock = asyncio.Lock()

    async def _seed(self, guild_id: GuildID) -> GuildEventConfig:
        committed = await self.config_store.get(guild_id)
        return committed if committed is not None else GuildEventConfig()

    async def _get_or_create_locked(self, guild_id: GuildID) -> GuildEventConfig:
        draft = self._drafts.get(guild_id)
        if draft is None:
            draft = await self._seed(guild_id)
            self._drafts[guild_id] = draft
        return draft

    async def peek(self, guild_id: GuildID) -> Optional[GuildEventConfig]:
        """Return a copy of the current draft without creating one."""
        async with self._lock:
            draft = self._drafts.get(GuildID(guild_id))
            return draft.copy() if draft is not None else None

    async def get_or_create(self, guild_id: GuildID) -> GuildEventConfig:
        """Return the draft, seeding it from the committed config (or empty) if absent."""
        guild_id = GuildID(guild_id)
        async with self._lock:
            return (await self._get_or_create_locked(guild_id)).copy()

    async def load_committed(self, guild_id: GuildID) -> GuildEventConfig:
        """Discard the draft and reload it from the committed configuration."""
        guild_id = GuildID(guild_id)
        async with self._lock:
            draft = await self._seed(guild_id)
            self._drafts[guild_id] = draft
            logger.debug("[DRAFTS] Reloaded draft for guild %s from committed configuration", guild_id)
            return draft.copy()

    async def create(self, guild_id: GuildID, channel_id: ChannelID, start: str, end: str) -> GuildEventConfig:
        """Replace the draft with a fresh configuration (no roles, no games).

        Raises:
            ValidationError: If either expression does not parse. The existing
                draft is left untouched.
        """
        guild_id = GuildID(guild_id)
        start_schedule = CronSchedule.parse(start)
        end_schedule = CronSchedule.parse(end)

        async with self._lock:
            draft = GuildEventConfig(
                channel_id=ChannelID(channel_id),
                start=start_schedule.expression,
                end=end_schedule.expression,
            )
            self._drafts[guild_id] = draft
            logger.debug("[DRAFTS] Created fresh draft for guild %s", guild_id)
            return draft.copy()

    async def set_core(self, guild_id: GuildID, channel_id: ChannelID, start: str, end: str) -> GuildEventConfig:
        """Update channel and expressions, keeping the draft's roles and games.

        Raises:
            ValidationError: If either expression does not parse. Nothing is
                changed in that case.
        """
        guild_id = GuildID(guild_id)
        start_schedule = CronSchedule.parse(start)
        end_schedule = CronSchedule.parse(end)

        async with self._lock:
            draft = await self._get_or_create_locked(guild_id)
            draft.channel_id = ChannelID(channel_id)
            draft.start = start_schedule.expression
            draft.end = end_schedule.expression
            return draft.copy()

    async def add_roles(self, guild_id: GuildID, role_ids: Iterable[RoleID]) -> GuildEventConfig:
        """Append roles to the draft's mention list."""
        guild_id = GuildID(guild_id)
        new_roles = [RoleID(role_id) for role_id in role_ids]

        async with self._lock:
            draft = await self._get_or_create_locked(guild_id)
            if draft.role_ids is None:
                draft.role_ids = []
            draft.role_ids.extend(new_roles)
            return draft.copy()

    async def add_game(self, guild_id: GuildID, game: GameInfo) -> GuildEventConfig:
        """Append a game to the draft."""
        guild_id = GuildID(guild_id)
        async with self._lock:
            draft = await self._get_or_create_locked(guild_id)
            draft.games.append(game)
            return draft.copy()

    async def commit(self, guild_id: GuildID) -> GuildEventConfig:
        """Validate the draft and persist it as the guild's committed configuration.

        The draft itself is kept so operators can continue editing it.

        Raises:
            NoDraft: If the guild has no draft.
            ValidationError: If the draft is incomplete.
            PersistenceError: If writing the file fails.
        """
        guild_id = GuildID(guild_id)
        async with self._lock:
            draft = self._drafts.get(guild_id)
            if draft is None:
                raise NoDraft(guild_id)
            draft.validate()
            committed = draft.copy()

        await self.config_store.commit(guild_id, committed)
        logger.info("[DRAFTS] Committed draft for guild %s", guild_id)
        return committed.copy()
