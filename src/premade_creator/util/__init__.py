"""
Utility functions and helpers for the premade creator.

- **logger.py**: Centralized logging configuration with coloured console output,
  rotating file handlers and per-session log aggregation.

- **text_batcher.py**: Greedy packing of strings into length-bounded batches
  for embed fields.
"""
