"""
Interaction handlers.

- **permissions_cmds.py**: ``/permissions`` and the permission select menu.
- **previews_cmds.py**: ``/previews`` and the ``Archive`` context menu.
- **moderation_cmds.py**: ``/timeout`` and ``/untimeout``.
- **info_cmds.py**: ``/info``.
- **routes.py**: route tables wiring handlers to permissions.
- **command_schema.py**: command payloads and their registration.
"""
