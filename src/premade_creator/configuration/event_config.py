"""
Committed per-guild premade event configuration.

Responsibilities:
- Load every guild's committed configuration from a single JSON file at startup
- Serve copies of committed configurations to the scheduler and the notifier
- Persist the whole map (full overwrite) whenever a draft is committed

A missing or corrupt file is never fatal: the store starts empty and the
problem is logged. Writes happen while holding the store lock, so a reader
never observes a commit whose map update and file write disagree.
"""

from __future__ import annotations

import asyncio
import fcntl
import json
from pathlib import Path
from typing import Any, Dict, Optional

from premade_creator.datatypes.discord_datatypes import GuildID
from premade_creator.datatypes.errors import ConfigNotFound, PersistenceError
from premade_creator.datatypes.event_datatypes import GuildEventConfig
from premade_creator.util.logger import get_logger

logger = get_logger("event_config_store")


class EventConfigStore:
    """
    Durable guild -> :class:`GuildEventConfig` map backed by a JSON file.

    Every accessor returns copies so callers can never mutate committed state
    outside of :meth:`upsert` / :meth:`commit`.
    """

    def __init__(self, data_path: Path) -> None:
        self.data_path = Path(data_path)
        self._configs: Dict[GuildID, GuildEventConfig] = {}
        self._lock = asyncio.Lock()

    # -------- Loading --------
    def load(self) -> Dict[GuildID, GuildEventConfig]:
        """Replace the in-memory map with the file contents and return a copy.

        Called once at startup before the event loop serves commands.
        """
        self._configs = self._read_file()
        logger.info("[EVENT CONFIG] Loaded %d guild configuration(s) from %s", len(self._configs), self.data_path)
        return {guild_id: config.copy() for guild_id, config in self._configs.items()}

    def _read_file(self) -> Dict[GuildID, GuildEventConfig]:
        try:
            with self.data_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    raw = json.load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.info("[EVENT CONFIG] %s not found; starting with an empty configuration.", self.data_path)
            return {}
        except (OSError, ValueError) as exc:
            logger.error("[EVENT CONFIG] Couldn't read %s: %s; starting with an empty configuration.", self.data_path, exc)
            return {}

        try:
            return deserialize_configs(raw)
        except Exception as exc:
            logger.error("[EVENT CONFIG] Couldn't deserialize %s: %s; starting with an empty configuration.", self.data_path, exc)
            return {}

    # -------- Reads --------
    async def get(self, guild_id: GuildID) -> Optional[GuildEventConfig]:
        """Return a copy of the committed configuration for a guild, if any."""
        async with self._lock:
            config = self._configs.get(GuildID(guild_id))
            return config.copy() if config is not None else None

    async def require(self, guild_id: GuildID) -> GuildEventConfig:
        """Like :meth:`get`, but raise :class:`ConfigNotFound` when the guild has no configuration."""
        config = await self.get(guild_id)
        if config is None:
            raise ConfigNotFound(guild_id)
        return config

    async def snapshot(self) -> Dict[GuildID, GuildEventConfig]:
        """Return a copy of every committed configuration."""
        async with self._lock:
            return {guild_id: config.copy() for guild_id, config in self._configs.items()}

    async def list_guild_ids(self) -> list[GuildID]:
        async with self._lock:
            return list(self._configs.keys())

    # -------- Writes --------
    async def upsert(self, guild_id: GuildID, config: GuildEventConfig) -> None:
        """Replace a guild's committed configuration in memory only."""
        async with self._lock:
            self._configs[GuildID(guild_id)] = config.copy()

    async def save_to_disk(self) -> None:
        """Serialize the whole map and overwrite the backing file.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        async with self._lock:
            await self._write_locked()

    async def commit(self, guild_id: GuildID, config: GuildEventConfig) -> None:
        """Upsert a configuration and persist the map as one atomic step.

        If the write fails the in-memory map keeps the new configuration, so
        memory and disk diverge until the next successful commit.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        async with self._lock:
            self._configs[GuildID(guild_id)] = config.copy()
            logger.debug("[EVENT CONFIG] Committed configuration for guild %s", guild_id)
            await self._write_locked()

    async def _write_locked(self) -> None:
        payload = serialize_configs(self._configs)
        try:
            await asyncio.to_thread(self._write_file, payload)
        except OSError as exc:
            logger.error("[EVENT CONFIG] Failed to write %s: %s", self.data_path, exc)
            raise PersistenceError(f"Couldn't write configuration to disk: {exc}") from exc
        logger.info("[EVENT CONFIG] Wrote %d guild configuration(s) to %s", len(payload), self.data_path)

    def _write_file(self, payload: Dict[str, Any]) -> None:
        self.data_path.parent.mkdir(parents=True, exist_ok=True)
        with self.data_path.open("w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                json.dump(payload, f, ensure_ascii=False, indent=4)
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def serialize_configs(configs: Dict[GuildID, GuildEventConfig]) -> Dict[str, Any]:
    """Convert the committed map to its JSON form (guild IDs as string keys)."""
    return {str(guild_id): config.to_dict() for guild_id, config in configs.items()}


def deserialize_configs(raw: Any) -> Dict[GuildID, GuildEventConfig]:
    """Parse the JSON form produced by :func:`serialize_configs`.

    Raises:
        ValueError: If the top level is not an object.
        KeyError / TypeError / ValueError: If an entry is malformed.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
    return {GuildID(guild_id): GuildEventConfig.from_dict(entry) for guild_id, entry in raw.items()}
