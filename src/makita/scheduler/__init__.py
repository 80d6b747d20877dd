"""
Background lifecycle machinery.

- **task_broadcast.py**: ``TaskBroadcast`` fan-out of ``Kill`` and
  ``GuildDestroyed`` messages to every long-lived subscriber.
- **periodic_task.py**: ``PeriodicTask``, an interval loop that stops on ``Kill``.
- **guild_cleanup.py**: the daily sweep marking departed guilds for expiry and
  purging expired ones.
"""
