"""
chatwarden - Group Chat Moderation and Engagement Bot

chatwarden watches group chats, warns members who post offensive words or
unauthorized links, and keeps per-member message counts that power activity
rankings and "lurker" listings.

Core Components:

- **Moderation**: Word/link classifier and a three-tier warning escalation
  cycle (first warning, second warning, punishment, then reset)
- **State**: Activation registry, interaction and warning ledgers, and the
  editable word blocklist, flushed to SQLite after every change
- **Engagement**: Top-talker rankings and lurker listings per group
- **Gateway**: Discord adapter that turns channel traffic into moderation input
- **Interactive Console**: Live administration (group toggles, blocklist,
  statistics, data clearing, restart/shutdown)

Usage:
    from chatwarden.main import main
    main()  # Starts the bot with console interface
"""
