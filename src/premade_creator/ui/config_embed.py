"""
Embed rendering for draft and committed premade configurations.

Role lists and game lists can be arbitrarily long, so they are folded into as
many "Roles" / "Games" fields as needed. Discord rejects embeds with more than
25 fields or 6000 characters; anything beyond that is summarised in a final
"and N more" field.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import discord

from premade_creator.configuration.app_configuration import DEFAULT_EMBED_COLOR, DEFAULT_FIELD_BUDGET
from premade_creator.datatypes.discord_datatypes import RoleID
from premade_creator.datatypes.event_datatypes import GameInfo, GuildEventConfig
from premade_creator.util.text_batcher import fold_joined

NOT_SET = "Not set"
INCOMPLETE_FOOTER = "Incomplete: a channel and valid start/end expressions are required before committing."

MAX_FIELDS = 25
MAX_EMBED_CHARS = 6000
OVERFLOW_NAME = "…"
# Room kept free for the overflow field itself.
OVERFLOW_RESERVE = 64

Field = Tuple[str, str, bool]


def format_roles(role_ids: Optional[List[RoleID]], budget: int = DEFAULT_FIELD_BUDGET) -> List[str]:
    """Render role mentions as field values of at most ``budget`` characters."""
    if not role_ids:
        return ["None"]
    return fold_joined(budget, [f"<@&{role_id}>" for role_id in role_ids], ", ")


def format_game(game: GameInfo, budget: int = DEFAULT_FIELD_BUDGET) -> str:
    """One line per game, clipped to ``budget`` characters."""
    roles = ", ".join(f"<@&{role_id}>" for role_id in game.role_ids) if game.role_ids else "None"
    line = f"{game.emoji} {game.name}: <#{game.channel_id}>, {roles}"
    if len(line) > budget:
        line = line[:budget - 1] + "…"
    return line


def continued_fields(name: str, values: List[str], inline: bool = False) -> List[Field]:
    return [(name if index == 0 else f"{name} (cont)", value, inline) for index, value in enumerate(values)]


def add_capped_fields(embed: discord.Embed, fields: List[Field], used_chars: int = 0) -> int:
    """Add ``fields`` until Discord's field or character limit would be hit.

    Returns the number of fields that did not fit. Those are replaced by a
    single overflow field.
    """
    for index, (name, value, inline) in enumerate(fields):
        remaining = len(fields) - index
        reserve = OVERFLOW_RESERVE if remaining > 1 else 0
        slots = MAX_FIELDS - len(embed.fields) - (1 if remaining > 1 else 0)
        size = len(name) + len(value)
        if slots <= 0 or used_chars + size + reserve > MAX_EMBED_CHARS:
            embed.add_field(name=OVERFLOW_NAME, value=f"and {remaining} more field(s)", inline=False)
            return remaining
        embed.add_field(name=name, value=value, inline=inline)
        used_chars += size
    return 0


def build_config_embed(
    config: GuildEventConfig,
    title: str,
    color: Tuple[int, int, int] = DEFAULT_EMBED_COLOR,
    budget: int = DEFAULT_FIELD_BUDGET,
) -> discord.Embed:
    """
    Build an embed describing a configuration.

    Fields: the announcement channel, the start and end expressions, the roles
    mentioned at start and the games with their result channel and roles, the
    last two continued over extra fields when long.
    """
    embed = discord.Embed(title=title, color=discord.Color.from_rgb(*color))
    used_chars = len(title)
    if not config.is_valid():
        embed.set_footer(text=INCOMPLETE_FOOTER)
        used_chars += len(INCOMPLETE_FOOTER)

    channel = f"<#{config.channel_id}> ({config.channel_id})" if config.channel_id is not None else NOT_SET
    fields: List[Field] = [
        ("Channel", channel, False),
        ("Event times", f"Starts: `{config.start or NOT_SET}`\n  Ends: `{config.end or NOT_SET}`", True),
    ]
    fields += continued_fields("Roles", format_roles(config.role_ids, budget))
    if config.games:
        lines = [format_game(game, budget) for game in config.games]
        fields += continued_fields("Games", fold_joined(budget, lines, "\n"))

    add_capped_fields(embed, fields, used_chars)
    return embed
