"""Data model for channels, players, rendered messages and per-player chat state."""
