"""
Operator interface for Makita.

- **console.py**: Interactive console for live bot management: status, guild
  listing, sudo grants, an on-demand guild cleanup sweep, and graceful
  shutdown/restart. Uses prompt_toolkit so input never blocks Discord event
  handling.
"""
