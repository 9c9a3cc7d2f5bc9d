"""Messaging gateway seam and its Discord implementation."""
