"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but the premade configuration file keys
guilds by their string form while storing channels and roles as numbers. These
wrappers give every identifier one consistent interface regardless of where it
came from (JSON, a slash command option, a raw mention string).
"""

from __future__ import annotations

import re
from typing import Optional, Union


class Snowflake:
    """
    Base class for Discord snowflake identifiers.

    The value is stored as a string for JSON parity, like Discord's own API.
    Equality works against other instances of the same class as well as raw
    ``int`` and ``str`` values.

    Example:
        >>> cid = ChannelID(376355712223412225)
        >>> cid.to_int()
        376355712223412225
        >>> str(cid)
        '376355712223412225'
        >>> ChannelID("<#376355712223412225>") == cid
        True
    """

    __slots__ = ("_value",)

    # Mention form accepted by the subclass, if any.
    MENTION_PATTERN: Optional[re.Pattern] = None

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, mention string or another snowflake.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            if value < 0:
                raise ValueError(f"Snowflake cannot be negative: {value}")
            self._value = str(value)
        elif isinstance(value, str):
            text = value.strip()
            match = self.MENTION_PATTERN.match(text) if self.MENTION_PATTERN else None
            if match:
                text = match.group(1)
            parsed = int(text)
            if parsed < 0:
                raise ValueError(f"Snowflake cannot be negative: {value}")
            self._value = str(parsed)
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls and JSON output."""
        return int(self._value)

    def __int__(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    """Type-safe wrapper for Discord guild (server) IDs."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Type-safe wrapper for Discord channel IDs. Accepts ``<#id>`` mentions."""

    __slots__ = ()
    MENTION_PATTERN = re.compile(r"^<#(\d+)>$")


class RoleID(Snowflake):
    """Type-safe wrapper for Discord role IDs. Accepts ``<@&id>`` mentions."""

    __slots__ = ()
    MENTION_PATTERN = re.compile(r"^<@&(\d+)>$")


class MessageID(Snowflake):
    """Type-safe wrapper for Discord message IDs."""

    __slots__ = ()

    @classmethod
    def from_message(cls, message) -> "MessageID":
        return cls(message.id)


class UserID(Snowflake):
    """Type-safe wrapper for Discord user IDs. Accepts ``<@id>`` mentions."""

    __slots__ = ()
    MENTION_PATTERN = re.compile(r"^<@!?(\d+)>$")

    @classmethod
    def from_user(cls, member) -> "UserID":
        return cls(member.id)
