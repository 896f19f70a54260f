"""
Premade configuration cog.

Exposes the premade commands as slash commands:
- /pmconfig get|create|set|add-roles|add-game|commit: edit and commit the
  guild's draft (requires the Manage Server permission)
- /pmrehash: make the scheduler pick up committed changes (bot owner only)

Every reply renders the resulting draft as an embed. Expected errors (bad cron
syntax, missing draft, disk failure...) are reported to the invoking user;
anything else reaches the global application command error handler.
"""

from typing import Sequence, Tuple

import discord
from discord.ext import commands

from premade_creator.bot.premade_commands import CommandReply, PremadeCommands
from premade_creator.configuration.app_configuration import DEFAULT_EMBED_COLOR, DEFAULT_FIELD_BUDGET
from premade_creator.datatypes.errors import PremadeError
from premade_creator.ui.config_embed import build_config_embed
from premade_creator.util.logger import get_logger

logger = get_logger("premade_cog")


class PremadeCog(commands.Cog):
    """Slash command front-end for :class:`PremadeCommands`."""

    pmconfig = discord.SlashCommandGroup("pmconfig", "Configure the premade creator for this server")

    def __init__(
        self,
        bot: discord.Bot,
        premade_commands: PremadeCommands,
        embed_color: Tuple[int, int, int] = DEFAULT_EMBED_COLOR,
        field_budget: int = DEFAULT_FIELD_BUDGET,
    ):
        self.bot = bot
        self.premade_commands = premade_commands
        self.embed_color = embed_color
        self.field_budget = field_budget
        logger.info("Premade cog loaded")

    async def _ensure_guild_context(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        return True

    def _has_manage_permission(self, ctx: discord.ApplicationContext) -> bool:
        member = ctx.user
        permissions = getattr(member, "guild_permissions", None)
        return bool(getattr(permissions, "manage_guild", False))

    async def _reply(self, ctx: discord.ApplicationContext, reply: CommandReply) -> None:
        if reply.config is None:
            await ctx.respond(reply.title, ephemeral=True)
            return
        embed = build_config_embed(reply.config, reply.title, self.embed_color, self.field_budget)
        await ctx.respond(embed=embed, ephemeral=True)

    async def _run(self, ctx: discord.ApplicationContext, name: str, args: Sequence[str]) -> None:
        """Check guild and permission, dispatch the command and report the outcome."""
        if not await self._ensure_guild_context(ctx):
            return

        if not self._has_manage_permission(ctx):
            await ctx.respond("You need the Manage Server permission to configure the premade creator.", ephemeral=True)
            return

        try:
            reply = await self.premade_commands.dispatch(name, ctx.guild_id, list(args))
        except PremadeError as exc:
            logger.debug("'%s' rejected in guild %s: %s", name, ctx.guild_id, exc)
            await ctx.respond(f"❌ {exc}", ephemeral=True)
            return

        await self._reply(ctx, reply)

    @pmconfig.command(name="get", description="Load the committed configuration into your draft")
    async def get_draft(self, ctx: discord.ApplicationContext):
        await self._run(ctx, "get", [])

    @pmconfig.command(name="create", description="Start a fresh draft with no roles and no games")
    async def create(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel the start announcement is posted to"),
        start: discord.Option(str, "Start cron expression (sec min hour day month weekday)"),
        end: discord.Option(str, "End cron expression (sec min hour day month weekday)"),
    ):
        await self._run(ctx, "create", [str(channel.id), start, end])

    @pmconfig.command(name="set", description="Change the draft's channel and event times")
    async def set_times(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel the start announcement is posted to"),
        start: discord.Option(str, "Start cron expression (sec min hour day month weekday)"),
        end: discord.Option(str, "End cron expression (sec min hour day month weekday)"),
    ):
        await self._run(ctx, "set", [str(channel.id), start, end])

    @pmconfig.command(name="add-roles", description="Add roles to mention in the start announcement")
    async def add_roles(
        self,
        ctx: discord.ApplicationContext,
        roles: discord.Option(str, "Role mentions or IDs separated by spaces"),
    ):
        await self._run(ctx, "add roles", roles.split())

    @pmconfig.command(name="add-game", description="Add a game players can react to")
    async def add_game(
        self,
        ctx: discord.ApplicationContext,
        name: discord.Option(str, "Name of the game"),
        emoji: discord.Option(str, "Emoji players react with"),
        channel: discord.Option(discord.TextChannel, "Channel the players list is posted to"),
        roles: discord.Option(str, "Role mentions or IDs to ping with the players list", required=False, default=""),
    ):
        await self._run(ctx, "add game", [name, emoji, str(channel.id), *(roles or "").split()])

    @pmconfig.command(name="commit", description="Validate the draft and save it")
    async def commit(self, ctx: discord.ApplicationContext):
        await self._run(ctx, "commit", [])

    @commands.slash_command(name="pmrehash", description="Reload the scheduled premade events")
    async def rehash(self, ctx: discord.ApplicationContext):
        if not await self.bot.is_owner(ctx.user):
            await ctx.respond("Only the bot owner can rehash the scheduler.", ephemeral=True)
            return
        reply = await self.premade_commands.dispatch("rehash", ctx.guild_id or 0, [])
        await self._reply(ctx, reply)


def setup(bot: discord.Bot, premade_commands: PremadeCommands, embed_color=DEFAULT_EMBED_COLOR, field_budget=DEFAULT_FIELD_BUDGET) -> None:
    """Register the PremadeCog with the bot."""
    bot.add_cog(PremadeCog(bot, premade_commands, embed_color, field_budget))
