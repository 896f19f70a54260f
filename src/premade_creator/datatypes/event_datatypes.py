"""
Data structures describing a guild's premade event configuration.

A configuration names the channel the start announcement goes to, the cron
expressions for the start and end events, the roles to mention and the list
of games players can react to. The same structure is used for the committed
configuration and for the in-memory draft operators edit before committing.

JSON layout (one entry per guild, keyed by the guild ID as a string)::

    {
        "359818298067779584": {
            "channel_id": 376355712223412225,
            "start": "0 * * * * *",
            "end": "30 * * * * *",
            "role_ids": [376685245409525760],
            "games": [
                {
                    "name": "Rocket League",
                    "emoji": {"name": "🏎"},
                    "role_ids": null,
                    "channel_id": 491722776055644160
                }
            ]
        }
    }
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from premade_creator.datatypes.discord_datatypes import ChannelID, RoleID
from premade_creator.datatypes.errors import ValidationError
from premade_creator.scheduler.cron import CronSchedule

_CUSTOM_EMOJI_PATTERN = re.compile(r"^<(a?):([A-Za-z0-9_~]{2,32}):(\d+)>$")


@dataclass(slots=True, frozen=True)
class GameEmoji:
    """
    Emoji used as the reaction affordance for a game.

    Unicode emojis only carry a ``name`` (the emoji text itself). Custom guild
    emojis also carry their snowflake ``id`` and whether they are animated.
    """

    name: str
    id: Optional[int] = None
    animated: bool = False

    @property
    def is_custom(self) -> bool:
        return self.id is not None

    @classmethod
    def parse(cls, text: str) -> "GameEmoji":
        """
        Parse an emoji from command input.

        Accepts ``<:name:id>``, ``<a:name:id>`` or a unicode emoji.

        Raises:
            ValidationError: If the text is neither form.
        """
        value = (text or "").strip()
        match = _CUSTOM_EMOJI_PATTERN.match(value)
        if match:
            animated, name, emoji_id = match.groups()
            return cls(name=name, id=int(emoji_id), animated=bool(animated))

        if not value or value.startswith("<") or any(ch.isspace() for ch in value):
            raise ValidationError(f"Invalid emoji: {text!r}")
        # Plain words are not emojis; every unicode emoji has a non-ASCII code point.
        if value.isascii():
            raise ValidationError(f"Invalid emoji: {text!r}")
        return cls(name=value)

    def __str__(self) -> str:
        if self.id is None:
            return self.name
        prefix = "a" if self.animated else ""
        return f"<{prefix}:{self.name}:{self.id}>"

    def to_dict(self) -> Dict[str, Any]:
        if self.id is None:
            return {"name": self.name}
        return {"name": self.name, "id": self.id, "animated": self.animated}

    @classmethod
    def from_dict(cls, data: Any) -> "GameEmoji":
        if isinstance(data, str):
            return cls.parse(data)
        if not isinstance(data, dict) or not data.get("name"):
            raise ValidationError(f"Invalid emoji entry: {data!r}")
        emoji_id = data.get("id")
        return cls(
            name=str(data["name"]),
            id=int(emoji_id) if emoji_id is not None else None,
            animated=bool(data.get("animated", False)),
        )


@dataclass(slots=True)
class GameInfo:
    """A game offered in the start announcement and reported at the end event."""

    name: str
    emoji: GameEmoji
    channel_id: ChannelID
    role_ids: Optional[List[RoleID]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "emoji": self.emoji.to_dict(),
            "role_ids": _roles_to_json(self.role_ids),
            "channel_id": self.channel_id.to_int(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameInfo":
        return cls(
            name=str(data["name"]),
            emoji=GameEmoji.from_dict(data["emoji"]),
            channel_id=ChannelID(data["channel_id"]),
            role_ids=_roles_from_json(data.get("role_ids")),
        )


@dataclass(slots=True)
class GuildEventConfig:
    """
    Event configuration for one guild.

    Attributes:
        channel_id: Where the start announcement is posted. ``None`` only in a
            freshly created draft.
        start: Six-field cron expression (seconds first) for the start event.
        end: Six-field cron expression for the end event.
        role_ids: Roles mentioned by the start announcement, or ``None``.
        games: Games offered, in display order.
    """

    channel_id: Optional[ChannelID] = None
    start: str = ""
    end: str = ""
    role_ids: Optional[List[RoleID]] = None
    games: List[GameInfo] = field(default_factory=list)

    def copy(self) -> "GuildEventConfig":
        return copy.deepcopy(self)

    def validate(self) -> None:
        """
        Ensure the configuration can be persisted and scheduled.

        Raises:
            ValidationError: If the channel is unset or an expression does not parse.
        """
        if self.channel_id is None:
            raise ValidationError("No announcement channel configured.")
        CronSchedule.parse(self.start)
        CronSchedule.parse(self.end)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ValidationError:
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channel_id": self.channel_id.to_int() if self.channel_id is not None else None,
            "start": self.start,
            "end": self.end,
            "role_ids": _roles_to_json(self.role_ids),
            "games": [game.to_dict() for game in self.games],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuildEventConfig":
        channel_id = data.get("channel_id")
        return cls(
            channel_id=ChannelID(channel_id) if channel_id is not None else None,
            start=str(data.get("start", "")),
            end=str(data.get("end", "")),
            role_ids=_roles_from_json(data.get("role_ids")),
            games=[GameInfo.from_dict(game) for game in data.get("games", [])],
        )


def _roles_to_json(role_ids: Optional[List[RoleID]]) -> Optional[List[int]]:
    if role_ids is None:
        return None
    return [role_id.to_int() for role_id in role_ids]


def _roles_from_json(raw: Any) -> Optional[List[RoleID]]:
    if raw is None:
        return None
    return [RoleID(role_id) for role_id in raw]
