"""
Operator commands for configuring premade events.

The command set is closed: every command is registered once in a dispatch
table with its usage string and minimum argument count, and ``dispatch``
rejects anything else. Handlers receive their arguments as a list of strings
(shell-style quoting groups a cron expression into one argument) and return a
:class:`CommandReply` describing the resulting draft.

Commands::

    get                                         reload the draft from the committed config
    create <channel> "<start>" "<end>"          replace the draft with a fresh one
    set <channel> "<start>" "<end>"             change channel and times, keep roles/games
    add roles <role>...                         append roles to mention at start
    add game "<name>" <emoji> <channel> [<role>...]
    commit                                      validate and persist the draft
    rehash                                      rebuild the scheduler's job table
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from premade_creator.configuration.drafts import DraftStore
from premade_creator.datatypes.discord_datatypes import ChannelID, GuildID, RoleID
from premade_creator.datatypes.errors import ValidationError
from premade_creator.datatypes.event_datatypes import GameEmoji, GameInfo, GuildEventConfig
from premade_creator.scheduler.event_scheduler import ReloadSignal
from premade_creator.util.logger import get_logger

logger = get_logger("premade_commands")


@dataclass
class CommandReply:
    """
    Outcome of a command.

    Attributes:
        title: Headline shown to the operator.
        config: Draft to render alongside the title, if the command produced one.
    """

    title: str
    config: Optional[GuildEventConfig] = None


CommandHandler = Callable[[GuildID, List[str]], Awaitable[CommandReply]]


@dataclass(frozen=True)
class PremadeCommand:
    name: str
    handler: CommandHandler
    usage: str
    description: str
    min_args: int = 0
    max_args: Optional[int] = None


def parse_channel(value: str) -> ChannelID:
    try:
        return ChannelID(value)
    except ValueError:
        raise ValidationError(f"Invalid channel: {value!r}") from None


def parse_role(value: str) -> RoleID:
    try:
        return RoleID(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value!r}") from None


def split_arguments(line: str) -> List[str]:
    """Split a command line, honouring double and single quotes."""
    try:
        return shlex.split(line)
    except ValueError as exc:
        raise ValidationError(f"Couldn't parse arguments: {exc}") from None


class PremadeCommands:
    """
    Dispatch table for the premade configuration commands.

    Args:
        drafts: Draft store the commands mutate.
        reload_signal: Signal raised by ``rehash``.
    """

    def __init__(self, drafts: DraftStore, reload_signal: ReloadSignal) -> None:
        self.drafts = drafts
        self.reload_signal = reload_signal
        self._commands: Dict[str, PremadeCommand] = {}
        self._aliases: Dict[str, str] = {}

        self.register(PremadeCommand("get", self._get, "get", "Load the committed configuration into the draft", 0, 0))
        self.register(PremadeCommand(
            "create", self._create, 'create <channel> "<start>" "<end>"',
            "Start a fresh draft (no roles, no games)", 3, 3,
        ))
        self.register(PremadeCommand(
            "set", self._set, 'set <channel> "<start>" "<end>"',
            "Change the draft's channel and event times", 3, 3,
        ))
        self.register(PremadeCommand(
            "add roles", self._add_roles, "add roles <role>...",
            "Append roles to mention in the start announcement", 1,
        ), aliases=("add role",))
        self.register(PremadeCommand(
            "add game", self._add_game, 'add game "<name>" <emoji> <channel> [<role>...]',
            "Append a game to the draft", 3,
        ))
        self.register(PremadeCommand("commit", self._commit, "commit", "Validate and save the draft", 0, 0))
        self.register(PremadeCommand("rehash", self._rehash, "rehash", "Reload the scheduled events", 0, 0))

    # -------- Registry --------
    def register(self, command: PremadeCommand, aliases: Sequence[str] = ()) -> None:
        """Add a command to the table.

        Raises:
            ValueError: If the name or an alias is already taken.
        """
        for name in (command.name, *aliases):
            if name in self._commands or name in self._aliases:
                raise ValueError(f"Command {name!r} is already registered")
        self._commands[command.name] = command
        for alias in aliases:
            self._aliases[alias] = command.name

    @property
    def commands(self) -> List[PremadeCommand]:
        return list(self._commands.values())

    def resolve(self, name: str) -> Optional[PremadeCommand]:
        name = " ".join(name.split())
        return self._commands.get(self._aliases.get(name, name))

    # -------- Dispatch --------
    async def dispatch(self, name: str, guild_id: GuildID, args: Sequence[str]) -> CommandReply:
        """Run a registered command.

        Raises:
            ValidationError: Unknown command or wrong number of arguments.
            PremadeError: Whatever the handler raises.
        """
        command = self.resolve(name)
        if command is None:
            raise ValidationError(f"Unknown command: {name!r}")

        args = list(args)
        if len(args) < command.min_args or (command.max_args is not None and len(args) > command.max_args):
            raise ValidationError(f"Wrong number of arguments. Usage: `{command.usage}`")

        logger.debug("[PREMADE COMMANDS] %s %s in guild %s", command.name, args, guild_id)
        return await command.handler(GuildID(guild_id), args)

    async def dispatch_line(self, guild_id: GuildID, line: str) -> CommandReply:
        """Parse ``line`` (e.g. ``add game "Rocket League" 🏎 123``) and dispatch it."""
        tokens = split_arguments(line)
        if not tokens:
            raise ValidationError("No command given")

        # Two-word commands ("add roles", "add game") take precedence.
        if len(tokens) >= 2 and self.resolve(f"{tokens[0]} {tokens[1]}") is not None:
            return await self.dispatch(f"{tokens[0]} {tokens[1]}", guild_id, tokens[2:])
        return await self.dispatch(tokens[0], guild_id, tokens[1:])

    # -------- Handlers --------
    async def _get(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        draft = await self.drafts.load_committed(guild_id)
        return CommandReply("Server configuration loaded!", draft)

    async def _create(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        channel, start, end = args
        draft = await self.drafts.create(guild_id, parse_channel(channel), start, end)
        return CommandReply("New configuration created!", draft)

    async def _set(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        channel, start, end = args
        draft = await self.drafts.set_core(guild_id, parse_channel(channel), start, end)
        return CommandReply("Server configuration modified (don't forget to commit it)", draft)

    async def _add_roles(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        roles = [parse_role(arg) for arg in args]
        draft = await self.drafts.add_roles(guild_id, roles)
        return CommandReply("Roles added (don't forget to commit)", draft)

    async def _add_game(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        name, emoji, channel, *roles = args
        if not name.strip():
            raise ValidationError("Game name cannot be empty")
        game = GameInfo(
            name=name.strip(),
            emoji=GameEmoji.parse(emoji),
            channel_id=parse_channel(channel),
            role_ids=[parse_role(role) for role in roles] or None,
        )
        draft = await self.drafts.add_game(guild_id, game)
        return CommandReply("Game added (don't forget to commit)", draft)

    async def _commit(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        committed = await self.drafts.commit(guild_id)
        return CommandReply("Configuration saved and written to disk.", committed)

    async def _rehash(self, guild_id: GuildID, args: List[str]) -> CommandReply:
        self.reload_signal.request()
        logger.info("[PREMADE COMMANDS] Rehash requested from guild %s", guild_id)
        return CommandReply("Configuration successfully reloaded.")
