"""Engagement views derived from the interaction ledger."""
