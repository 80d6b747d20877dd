"""
Interaction routing.

- **slash_decode.py**: command path and typed option map from raw payloads.
- **custom_ids.py**: ``MAK;<Type>;k=v`` component id codec.
- **command_router.py**: route tables, permission gate and error rendering.
"""
