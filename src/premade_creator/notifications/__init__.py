"""
Start and end notifications.

- **notifier.py**: Composes the start announcement and the end results and
  posts them through the transport.

- **reaction_tracker.py**: Remembers the last start announcement per channel
  so the end event can read its reactions.
"""
