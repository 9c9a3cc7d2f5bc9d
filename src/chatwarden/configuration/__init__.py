"""
Configuration management for chatwarden.

- **app_configuration.py**: YAML configuration loader for global settings
  (default word blocklist, link pattern, command prefix, engagement limits,
  sticker keyword, database location). Falls back gracefully on missing or
  malformed config files.
"""
