"""
Premade Creator
===============

A Discord bot that announces the games available for tonight's premades at a
scheduled time, lets players pick by reacting, and posts who wants to play
each game when the event ends.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. PREMADE_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("PREMADE_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from premade_creator.configuration.app_configuration import load_app_config
from premade_creator.runtime import PremadeRuntime, build_runtime
from premade_creator.transport.discord_transport import DiscordTransport
from premade_creator.ui.console import ConsoleControl, close_bot_instance, console_session
from premade_creator.util.logger import get_logger, handle_exception


logger = get_logger("main")

RESTART_EXIT_CODE = 42


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents the premade creator needs.

    Reactions are required to read who picked each game at the end event.
    """
    intents = discord.Intents.default()
    intents.guilds = True
    intents.messages = True
    intents.reactions = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, runtime: PremadeRuntime) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from premade_creator.bot.cogs import events_listener, premade_cmds

    events_listener.setup(discord_bot_instance)
    premade_cmds.setup(
        discord_bot_instance,
        runtime.commands,
        embed_color=runtime.app_config.embed_color,
        field_budget=runtime.app_config.field_budget,
    )

    logger.info("All cogs loaded successfully.")


def create_bot() -> tuple[discord.Bot, PremadeRuntime]:
    """Instantiate the Discord bot, build the runtime around it and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    runtime = build_runtime(load_app_config(), DiscordTransport(bot))
    load_cogs(bot, runtime)
    return bot, runtime


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, runtime: PremadeRuntime) -> None:
    """Stop the scheduler, then close the Discord bot."""
    try:
        await runtime.scheduler.shutdown()
    except Exception as exc:
        logger.exception("Error during scheduler shutdown: %s", exc)

    await close_bot_instance(bot, log_close=True)

    logger.info("Shutdown complete.")


async def run_bot_session(bot: discord.Bot, token: str, runtime: PremadeRuntime, control: ConsoleControl) -> int:
    """Run the bot and the scheduler alongside the console, returning an exit code."""
    control.set_bot(bot)
    exit_code = 0

    try:
        await runtime.scheduler.start()
        async with console_session(control):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)
        await shutdown_runtime(bot, runtime)

    return exit_code


async def async_main() -> int:
    """Bootstrap the bot, scheduler and console, returning an exit code."""
    token = load_environment()

    try:
        bot, runtime = create_bot()
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    control = ConsoleControl(runtime)
    exit_code = await run_bot_session(bot, token, runtime, control)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code.

    Returns 42 to trigger a restart.
    """
    logger.info("Starting Premade Creator…")
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == RESTART_EXIT_CODE:
            logger.info("Restart requested; replacing current process with new instance.")
            # execv keeps stdin/stdout/stderr so the console survives the restart
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    print(f"Exited with code: {main()}")
