"""
Discord integration for the premade creator.

- **premade_commands.py**: Closed registry of operator commands (get, create,
  set, add roles, add game, commit, rehash) dispatched against the drafts.

- **cogs/**: py-cord cogs exposing the commands as slash commands and handling
  the bot lifecycle events.
"""
