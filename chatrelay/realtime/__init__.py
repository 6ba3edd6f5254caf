"""Recipient computation and delivery for chat channels."""
