"""Interactive console frontend."""
