"""Message link detection and preview rendering."""
