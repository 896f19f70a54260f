"""
Exception hierarchy for the premade creator.

Every error raised by the stores, the batcher, the notifier and the transport
derives from :class:`PremadeError`, so the command layer can report them to the
invoking operator while anything unexpected still reaches the global
application-command error handler.
"""


class PremadeError(Exception):
    """Base class for expected, recoverable premade creator errors."""


class ValidationError(PremadeError):
    """Bad cron syntax, wrong argument count/type or an incomplete configuration."""


class NoDraft(PremadeError):
    """A commit was requested for a guild that has no draft."""

    def __init__(self, guild_id) -> None:
        super().__init__(f"No draft configuration for guild {guild_id}. Use `get` or `create` first.")
        self.guild_id = guild_id


class ConfigNotFound(PremadeError):
    """No committed configuration exists for the guild."""

    def __init__(self, guild_id) -> None:
        super().__init__(f"No committed configuration for guild {guild_id}.")
        self.guild_id = guild_id


class ItemTooLarge(PremadeError):
    """A single string is longer than the batch budget it must fit into."""

    def __init__(self, item: str, budget: int) -> None:
        super().__init__(f"A string is too long ({len(item)} > {budget} characters).")
        self.item = item
        self.budget = budget


class PersistenceError(PremadeError):
    """Writing the committed configuration to disk failed."""


class TransportError(PremadeError):
    """Sending a message or fetching reactions through the transport failed."""
