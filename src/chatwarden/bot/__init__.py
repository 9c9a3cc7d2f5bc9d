"""Inbound message dispatching, group commands and the Discord cogs."""
