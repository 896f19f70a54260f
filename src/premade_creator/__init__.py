"""
Premade Creator - scheduled game-night announcements for Discord guilds

Operators stage an event configuration per guild (announcement channel, start
and end cron expressions, roles to mention and the games on offer), commit it
to disk, and a background scheduler posts the announcements.

Core Components:

- **Configuration**: Committed guild configurations persisted as JSON, plus
  in-memory drafts edited through slash commands
- **Scheduler**: Cron evaluation loop with hot reload ("rehash") of the job set
- **Notifications**: Start announcements with one reaction per game, and end
  notifications listing who reacted, posted to each game's channel
- **Interactive Console**: Live bot administration for status checks, listing
  scheduled jobs, rehash and graceful restart/shutdown
"""
