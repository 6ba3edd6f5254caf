"""
In-memory registry of per-player chat state.

All access goes through one lock, so callers never lock externally. Entry
creation is create-if-absent: a second login for the same player merges into
the existing entry instead of dropping changes made in between. Every toggle
persists the player's state immediately.
"""

import threading
import uuid
from collections.abc import Callable

from ..integration.protocols import PlayerStateStorage
from ..models.player_state import PlayerChatState
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.player_state_store")


class PlayerStateStore:
    """Mute, spy and ignore state of every known player."""

    def __init__(self, storage: PlayerStateStorage | None = None) -> None:
        self.storage = storage
        self._states: dict[uuid.UUID, PlayerChatState] = {}
        self._lock = threading.RLock()

    def _get_or_create(self, player_id: uuid.UUID) -> PlayerChatState:
        state = self._states.get(player_id)
        if state is None:
            state = PlayerChatState()
            self._states[player_id] = state
        return state

    def attach(self, player_id: uuid.UUID, loaded: PlayerChatState) -> PlayerChatState:
        """Install loaded state for a player, merging with any entry created meanwhile."""
        with self._lock:
            state = self._states.get(player_id)
            if state is None:
                state = loaded.copy()
                self._states[player_id] = state
            else:
                state.muted_channels |= loaded.muted_channels
                state.spy_channels |= loaded.spy_channels
                state.muted_players |= loaded.muted_players
                state.ignored_players |= loaded.ignored_players
            return state.copy()

    def load(self, player_id: uuid.UUID) -> PlayerChatState:
        """Load a player's state from storage and attach it."""
        loaded = PlayerChatState()
        if self.storage is not None:
            try:
                loaded = self.storage.load(player_id)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: A broken store must not block login
                logger.error("Failed to load player chat state", player_id=str(player_id), error=str(e))
        return self.attach(player_id, loaded)

    def snapshot(self, player_id: uuid.UUID) -> PlayerChatState:
        """A copy of the player's current state, empty if unknown."""
        with self._lock:
            state = self._states.get(player_id)
            return state.copy() if state is not None else PlayerChatState()

    def _save(self, player_id: uuid.UUID, state: PlayerChatState) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save(player_id, state)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Persistence is fire-and-forget
            logger.error("Failed to persist player chat state", player_id=str(player_id), error=str(e))

    def persist(self, player_id: uuid.UUID) -> None:
        """Hand the player's current state to storage."""
        if self.storage is None:
            return
        # Saves are issued under the lock so storage sees them in mutation order
        with self._lock:
            self._save(player_id, self.snapshot(player_id))

    def detach(self, player_id: uuid.UUID) -> PlayerChatState:
        """Forget a player's state and persist it, returning the final snapshot."""
        with self._lock:
            state = self._states.pop(player_id, None)
            final = state if state is not None else PlayerChatState()
            self._save(player_id, final.copy())
        return final

    def known_players(self) -> list[uuid.UUID]:
        with self._lock:
            return list(self._states)

    def _toggle(self, player_id: uuid.UUID, pick: Callable[[PlayerChatState], set], value: object) -> bool:
        with self._lock:
            state = self._get_or_create(player_id)
            members = pick(state)
            if value in members:
                members.discard(value)
                now_present = False
            else:
                members.add(value)
                now_present = True
            self._save(player_id, state.copy())
        return now_present

    def toggle_mute_channel(self, player_id: uuid.UUID, channel_id: str) -> bool:
        """Returns True if the channel is now muted."""
        return self._toggle(player_id, lambda s: s.muted_channels, channel_id.lower())

    def toggle_spy_channel(self, player_id: uuid.UUID, channel_id: str) -> bool:
        """Returns True if the player now spies the channel."""
        return self._toggle(player_id, lambda s: s.spy_channels, channel_id.lower())

    def toggle_mute_player(self, player_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        """Returns True if target is now muted."""
        return self._toggle(player_id, lambda s: s.muted_players, target_id)

    def toggle_ignore(self, player_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        """Returns True if target is now ignored."""
        return self._toggle(player_id, lambda s: s.ignored_players, target_id)

    def is_ignoring(self, who: uuid.UUID, target: uuid.UUID) -> bool:
        with self._lock:
            state = self._states.get(who)
            return state is not None and target in state.ignored_players

    def has_muted_player(self, who: uuid.UUID, target: uuid.UUID) -> bool:
        with self._lock:
            state = self._states.get(who)
            return state is not None and target in state.muted_players

    def has_muted_channel(self, who: uuid.UUID, channel_id: str) -> bool:
        with self._lock:
            state = self._states.get(who)
            return state is not None and channel_id.lower() in state.muted_channels

    def has_spy(self, who: uuid.UUID, channel_id: str) -> bool:
        with self._lock:
            state = self._states.get(who)
            return state is not None and channel_id.lower() in state.spy_channels
