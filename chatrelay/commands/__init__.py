"""Text command surface for the chat engine."""
