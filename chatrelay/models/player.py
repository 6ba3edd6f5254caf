"""
Host-side player reference.

The host builds a ChatPlayer for every connected session. Identity is the
player id; name, world and position are snapshots taken by the host.
"""

import uuid
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChatPlayer:
    """A connected player as seen by the chat engine."""

    player_id: uuid.UUID
    name: str
    world: str = field(default="overworld", compare=False)
    position: tuple[float, float, float] = field(default=(0.0, 0.0, 0.0), compare=False)
    is_operator: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return self.name
