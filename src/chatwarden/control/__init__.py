"""Administrative control surface."""
