"""
Cron-driven scheduling of premade events.

- **cron.py**: Six-field (seconds first) cron expressions evaluated through
  croniter.

- **event_scheduler.py**: Background loop that owns one start job and one end
  job per committed guild, rebuilt whenever a rehash is requested.
"""
