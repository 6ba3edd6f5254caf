"""
Persistence of per-player chat state.

JsonPlayerStateStorage keeps one JSON file per player and writes atomically
through a temporary file. PlayerStateWriter moves saves off the chat path:
saves are queued and written by a background thread, and drain() blocks
until everything queued so far is on disk.
"""

import json
import queue
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..integration.protocols import PlayerStateStorage
from ..models.player_state import PlayerChatState
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.player_state_storage")


class JsonPlayerStateStorage:
    """Stores each player's chat state in <data_dir>/<player_id>.json."""

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)

    def _get_player_file(self, player_id: uuid.UUID) -> Path:
        return self.data_dir / f"{player_id}.json"

    def load(self, player_id: uuid.UUID) -> PlayerChatState:
        """
        Load a player's state.

        A missing or unreadable file yields an empty state.
        """
        state_file = self._get_player_file(player_id)
        if not state_file.exists():
            return PlayerChatState()
        try:
            with open(state_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                "Failed to read player chat state",
                player_id=str(player_id),
                path=str(state_file),
                error=str(e),
                error_type=type(e).__name__,
            )
            return PlayerChatState()
        if not isinstance(data, dict):
            logger.warning("Player chat state file is not an object", player_id=str(player_id))
            return PlayerChatState()
        return PlayerChatState.from_dict(data)

    def save(self, player_id: uuid.UUID, state: PlayerChatState) -> None:
        """
        Write a player's state atomically.

        Raises:
            OSError: If the file cannot be written
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        state_file = self._get_player_file(player_id)
        data: dict[str, Any] = {
            "player_id": str(player_id),
            "last_updated": datetime.now(UTC).isoformat(),
            **state.to_dict(),
        }

        temp_file = state_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_file.replace(state_file)
        except OSError:
            if temp_file.exists():
                temp_file.unlink()
            raise

        logger.debug("Player chat state saved", player_id=str(player_id))


class PlayerStateWriter:
    """
    Queues saves for a PlayerStateStorage and writes them on a background thread.

    Loads go straight to the wrapped storage. Saves carry a copy of the state
    taken when they were queued.
    """

    def __init__(self, storage: PlayerStateStorage) -> None:
        self.storage = storage
        self._queue: queue.Queue[tuple[uuid.UUID, PlayerChatState]] = queue.Queue()
        self._shutdown_event = threading.Event()
        self._writer_thread: threading.Thread | None = None
        self._start_writer_thread()

    def _start_writer_thread(self) -> None:
        self._writer_thread = threading.Thread(target=self._writer_worker, name="chat-state-writer", daemon=True)
        self._writer_thread.start()
        logger.debug("Player state writer thread started")

    def _writer_worker(self) -> None:
        while not self._shutdown_event.is_set() or not self._queue.empty():
            try:
                player_id, state = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self.storage.save(player_id, state)
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: One failed save must not stop the writer
                logger.error(
                    "Failed to persist player chat state",
                    player_id=str(player_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                self._queue.task_done()
        logger.debug("Player state writer thread stopped")

    def load(self, player_id: uuid.UUID) -> PlayerChatState:
        return self.storage.load(player_id)

    def save(self, player_id: uuid.UUID, state: PlayerChatState) -> None:
        """Queue a save. After shutdown the save is written synchronously."""
        if self._shutdown_event.is_set():
            try:
                self.storage.save(player_id, state.copy())
            except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Late saves are best effort
                logger.error("Failed to persist player chat state", player_id=str(player_id), error=str(e))
            return
        self._queue.put((player_id, state.copy()))

    def drain(self) -> None:
        """Block until every queued save has been written."""
        self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def shutdown(self, timeout: float = 5.0) -> None:
        """Write everything still queued and stop the writer thread."""
        logger.info("Shutting down player state writer", pending=self.pending)
        self._shutdown_event.set()
        if self._writer_thread and self._writer_thread.is_alive():
            self._queue.join()
            self._writer_thread.join(timeout=timeout)
        logger.info("Player state writer shutdown complete")
