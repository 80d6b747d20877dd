"""Gateway event listeners: guild lifecycle and message auto-previews."""
