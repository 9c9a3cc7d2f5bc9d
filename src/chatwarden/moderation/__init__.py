"""
Moderation core.

- **classifier.py**: pure word/link classifier
- **moderation_engine.py**: interaction counting and the warning escalation cycle
- **notices.py**: chat-facing texts (warnings, ranking, lurkers, help)
"""
