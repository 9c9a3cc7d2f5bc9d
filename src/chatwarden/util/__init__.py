"""Shared helpers: logging and sticker image transcoding."""
