"""Interactive console utilities for managing the live Discord bot and its scheduler."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
import os
from typing import TYPE_CHECKING

import discord
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from premade_creator.datatypes.discord_datatypes import GuildID
from premade_creator.datatypes.errors import PremadeError
from premade_creator.util.logger import get_logger

if TYPE_CHECKING:
    from premade_creator.datatypes.event_datatypes import GuildEventConfig
    from premade_creator.runtime import PremadeRuntime

# Box drawing helpers for aligned console output
BOX_WIDTH = 45

def box_line(char: str) -> str:
    return char * BOX_WIDTH

def box_title(title: str) -> list[str]:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    return [
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝"
    ]

logger = get_logger("console")

# Type alias for command handler functions
CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


@dataclass
class Command:
    """Definition of a console command."""
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        """Check if input matches this command or any alias."""
        return input_cmd == self.name or input_cmd in self.aliases


def console_print(message: str, style: str = "") -> None:
    """Render text via prompt_toolkit without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


class ConsoleControl:
    """Manage console-driven lifecycle controls for the running bot and scheduler."""

    def __init__(self, runtime: PremadeRuntime | None = None) -> None:
        self.shutdown_event = asyncio.Event()
        self.restart_event = asyncio.Event()
        self._bot: discord.Bot | None = None
        self.runtime = runtime

    def set_bot(self, bot: discord.Bot | None) -> None:
        self._bot = bot

    @property
    def bot(self) -> discord.Bot | None:  # pragma: no cover - trivial getter
        return self._bot

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def request_restart(self) -> None:
        self.restart_event.set()

    def stop(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def is_restart_requested(self) -> bool:
        return self.restart_event.is_set()


async def close_bot_instance(bot: discord.Bot | None, *, log_close: bool = False) -> None:
    """Close the Discord bot instance if it is active."""
    if bot is None or bot.is_closed():
        return

    try:
        await bot.close()
        if log_close:
            logger.info("Discord bot connection closed.")
    except Exception as exc:  # pragma: no cover
        logger.exception("Error while closing Discord bot: %s", exc)


async def _request_lifecycle_action(control: ConsoleControl, *, restart: bool) -> None:
    """Trigger shutdown or restart from the console, closing the bot safely."""
    if restart:
        control.request_restart()
    control.request_shutdown()
    await close_bot_instance(control.bot)


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    """Display available commands and their descriptions."""
    console_print("\n╔═══════════════════════════════════════════╗", "ansigreen")
    console_print("║       Console Commands Reference          ║", "ansigreen")
    console_print("╚═══════════════════════════════════════════╝", "ansigreen")

    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")

    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    """Display bot connection and scheduler status."""

    for line in box_title("Bot Status"):
        console_print(line, "ansiblue")

    if control.bot:
        bot_status = "🟢 Connected" if not control.bot.is_closed() else "🔴 Disconnected"
        guilds = len(control.bot.guilds)
        console_print(f"  Bot:        {bot_status}")
        console_print(f"  Guilds:     {guilds}")
        console_print(f"  Latency:    {control.bot.latency * 1000:.0f}ms")
    else:
        console_print("  Bot:        🔴 Not initialized")

    runtime = control.runtime
    if runtime:
        console_print(f"  Configured: {len(await runtime.config_store.list_guild_ids())} guild(s)")
        console_print(f"  Scheduler:  {runtime.scheduler.state.value}")
        console_print(f"  Jobs:       {len(runtime.scheduler.jobs)}")
        console_print(f"  Tracked:    {await runtime.tracker.count()} announcement(s)")
    else:
        console_print("  Scheduler:  🔴 Not initialized")

    console_print("")


async def cmd_jobs(control: ConsoleControl, args: list[str]) -> None:
    """List scheduled start/end jobs with their next fire time."""
    runtime = control.runtime
    if not runtime or not runtime.scheduler.jobs:
        console_print("No scheduled jobs.", "ansiyellow")
        return

    jobs = runtime.scheduler.jobs
    for line in box_title(f"Scheduled Jobs ({len(jobs)})"):
        console_print(line, "ansiblue")

    for job in jobs:
        next_fire = job.next_fire().strftime("%Y-%m-%d %H:%M:%S")
        console_print(f"  • Guild {job.guild_id} {job.kind.value:<5} `{job.schedule}` next: {next_fire}")

    console_print("")


async def cmd_rehash(control: ConsoleControl, args: list[str]) -> None:
    """Ask the scheduler to rebuild its job table before the next tick."""
    if not control.runtime:
        console_print("Scheduler not initialized.", "ansired")
        return
    control.runtime.reload_signal.request()
    console_print("Rehash requested; the job table is rebuilt on the next tick.", "ansigreen")


def print_config(config: GuildEventConfig) -> None:
    """Plain-text rendering of a configuration for the console."""
    roles = ", ".join(str(role_id) for role_id in config.role_ids) if config.role_ids else "None"
    console_print(f"  Channel:    {config.channel_id if config.channel_id is not None else 'Not set'}")
    console_print(f"  Start:      {config.start or 'Not set'}")
    console_print(f"  End:        {config.end or 'Not set'}")
    console_print(f"  Roles:      {roles}")
    for game in config.games:
        console_print(f"  • {game.emoji} {game.name} -> channel {game.channel_id}")


def _parse_guild(value: str) -> GuildID | None:
    try:
        return GuildID(value)
    except ValueError:
        console_print(f"Invalid guild ID: {value!r}", "ansired")
        return None


async def cmd_draft(control: ConsoleControl, args: list[str]) -> None:
    """Show a guild's pending draft without creating one."""
    if not control.runtime:
        console_print("Runtime not initialized.", "ansired")
        return
    if len(args) != 1:
        console_print("Usage: draft <guild_id>", "ansiyellow")
        return
    guild_id = _parse_guild(args[0])
    if guild_id is None:
        return

    draft = await control.runtime.drafts.peek(guild_id)
    if draft is None:
        console_print(f"No draft for guild {guild_id}.", "ansiyellow")
        return
    for line in box_title(f"Draft for {guild_id}"):
        console_print(line, "ansiblue")
    print_config(draft)


async def cmd_pm(control: ConsoleControl, args: list[str]) -> None:
    """Run a premade configuration command on behalf of a guild."""
    if not control.runtime:
        console_print("Runtime not initialized.", "ansired")
        return
    if len(args) < 2:
        console_print("Usage: pm <guild_id> <command> [args...]", "ansiyellow")
        return
    guild_id = _parse_guild(args[0])
    if guild_id is None:
        return

    try:
        reply = await control.runtime.commands.dispatch_line(guild_id, " ".join(args[1:]))
    except PremadeError as exc:
        console_print(f"Error: {exc}", "ansired")
        return

    console_print(reply.title, "ansigreen")
    if reply.config is not None:
        print_config(reply.config)


async def cmd_clear(control: ConsoleControl, args: list[str]) -> None:
    """Clear the console screen."""
    os.system('cls' if os.name == 'nt' else 'clear')
    console_print("Console cleared.", "ansigreen")


async def cmd_restart(control: ConsoleControl, args: list[str]) -> None:
    """Request a full bot restart."""
    console_print("Restart requested. Bot will shut down and restart...", "ansiyellow")
    await _request_lifecycle_action(control, restart=True)


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    """Request graceful bot shutdown."""
    console_print("Shutdown requested.", "ansiyellow")
    await _request_lifecycle_action(control, restart=False)


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display bot connection, scheduler state and tracked announcements",
    ),
    Command(
        name="jobs",
        handler=cmd_jobs,
        aliases=["j"],
        description="List scheduled start/end jobs and when they fire next",
    ),
    Command(
        name="rehash",
        handler=cmd_rehash,
        aliases=["reload"],
        description="Rebuild the scheduled jobs from the committed configuration",
    ),
    Command(
        name="draft",
        handler=cmd_draft,
        aliases=["d"],
        description="Show a guild's pending draft configuration",
        usage="draft <guild_id>",
    ),
    Command(
        name="pm",
        handler=cmd_pm,
        aliases=["premade"],
        description="Run a premade configuration command for a guild",
        usage='pm <guild_id> add game "Rocket League" 🏎 <channel_id>',
    ),
    Command(
        name="clear",
        handler=cmd_clear,
        aliases=["cls"],
        description="Clear the console screen",
    ),
    Command(
        name="restart",
        handler=cmd_restart,
        aliases=["reboot"],
        description="Fully restart the entire bot (useful during development)",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Gracefully shut down the bot",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Interpret and execute a single console command line."""
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except Exception as exc:
                logger.exception("Error executing command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansired")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansired")


async def run_console(control: ConsoleControl) -> None:
    """Run the interactive operator console until shutdown is requested."""
    session = PromptSession("> ")

    console_print("\n╔═════════════════════════════════════╗", "ansigreen")
    console_print(  "║  Premade Creator Operator Console   ║", "ansigreen")
    console_print(  "╚═════════════════════════════════════╝", "ansigreen")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansiyellow")
                control.request_shutdown()
                await close_bot_instance(control.bot)
                break
            except Exception as exc:  # pragma: no cover
                logger.exception("Error in console input loop: %s", exc)
                console_print(f"Error: {exc}", "ansired")


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console alongside the bot, cleaning up automatically."""
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.stop()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
