"""Bot client construction: intents, cogs, command registration and interaction routing."""
