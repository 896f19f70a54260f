"""
Configuration management for the premade creator.

- **app_configuration.py**: YAML loader for global settings (scheduler tick,
  data file location, embed field budget and colour). Falls back to defaults on
  missing or malformed files.

- **event_config.py**: Committed per-guild event configurations, loaded from
  and written back to a single JSON file.

- **drafts.py**: In-memory drafts operators edit before committing them.
"""
