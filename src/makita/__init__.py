"""Makita: Discord bot for message previews, permissions and moderation."""

__version__ = "0.3.0"
