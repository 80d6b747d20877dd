"""
Configuration management for Makita.

- **app_configuration.py**: YAML loader for ``config/config.yml`` with ``.env``
  overrides for secrets. Produces an immutable ``BotConfig``; a missing file or
  key is a start-up ``ConfigError`` rather than a silent default.
"""
