"""Event listener Cog for the premade creator.

This cog handles bot lifecycle events (on_ready) and command error handling.
"""

import discord
from discord.ext import commands

from premade_creator.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and command error handlers."""

    def __init__(self, discord_bot_instance):
        self.bot = discord_bot_instance
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """Log the connected account and set the bot's presence."""
        if self.bot.user:
            await self._update_presence()
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")

    async def _update_presence(self) -> None:
        if not self.bot.user:
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="for tonight's premades",
            )
        )

    @commands.Cog.listener(name='on_application_command_error')
    async def on_application_command_error(self, application_context: discord.ApplicationContext, error: Exception):
        """Handle errors from application commands with logging and user feedback.

        Parameters
        ----------
        application_context:
            The command invocation context.
        error:
            The exception raised during command execution.
        """
        if isinstance(error, commands.CommandNotFound):
            return

        command_name = getattr(application_context.command, 'name', '<unknown>')
        logger.error(f"Error in command '{command_name}': {error}", exc_info=True)

        error_message = "A :bug: showed up while running this command."
        try:
            await application_context.respond(error_message, ephemeral=True)
        except discord.InteractionResponded:
            await application_context.followup.send(error_message, ephemeral=True)


def setup(discord_bot_instance):
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance))
