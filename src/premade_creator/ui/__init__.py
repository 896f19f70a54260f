"""
User interface components for the premade creator.

- **console.py**: Interactive operator console (status, scheduled jobs, rehash,
  restart and shutdown) built on prompt_toolkit.

- **config_embed.py**: Renders a draft or committed configuration as an embed.
"""
