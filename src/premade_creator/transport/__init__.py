"""
Message transport boundary.

The notifier only talks to :class:`EventTransport`; :class:`DiscordTransport`
implements it on top of py-cord.
"""

from premade_creator.transport.base import EmbedField, EventTransport, OutgoingMessage, ReactionUser

__all__ = ["EmbedField", "EventTransport", "OutgoingMessage", "ReactionUser"]
