"""Plain data types shared across moderation, state, gateway and control code."""
