"""Moderation state containers and their persistence coordinator."""
