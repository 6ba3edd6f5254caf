"""Stateful chat services: cooldowns, message filtering and per-player state."""
