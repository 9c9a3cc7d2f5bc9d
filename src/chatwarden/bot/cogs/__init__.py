"""py-cord cogs that feed Discord events into the message dispatcher."""
