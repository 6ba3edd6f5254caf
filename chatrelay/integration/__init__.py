"""Boundaries to host collaborators: permissions, economy, world, delivery, storage."""
