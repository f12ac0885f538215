# findme/client/cursor.py
import json
import logging
import time
from typing import Callable, MutableMapping

logger = logging.getLogger(__name__)

# saved positions older than this are ignored
MAX_AGE_MS = 60 * 60 * 1000


class SessionCursor:
    """
    Position in the swipe deck, kept in per-tab storage so an accidental
    reload resumes where the user was. It is a convenience only: the server
    never sees it.
    """

    def __init__(self, storage: MutableMapping[str, str], actor_id: str, actor_type: str,
                 clock: Callable[[], float] = time.time):
        self.storage = storage
        self.key = f"swipe_session_{actor_id}_{actor_type}"
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def load(self) -> int:
        raw = self.storage.get(self.key)
        if not raw:
            return 0
        try:
            saved = json.loads(raw)
            index = int(saved["currentIndex"])
            timestamp = int(saved["timestamp"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Error loading swipe state for %s", self.key)
            return 0
        if self._now_ms() - timestamp >= MAX_AGE_MS:
            return 0
        return max(index, 0)

    def save(self, index: int) -> None:
        self.storage[self.key] = json.dumps({"currentIndex": index, "timestamp": self._now_ms()})

    def clear(self) -> None:
        self.storage.pop(self.key, None)

    def advance(self, index: int, total: int) -> int:
        new_index = index + 1
        self.save(new_index)
        if new_index >= total:
            self.clear()
        return new_index
