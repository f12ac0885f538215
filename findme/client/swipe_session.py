# findme/client/swipe_session.py
import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, MutableMapping, Optional, Tuple

import httpx

from findme.client.api import FindMeClient
from findme.client.cursor import SessionCursor
from findme.client.errors import ApiError, AuthApiError
from findme.client.guard import SessionGuard

logger = logging.getLogger(__name__)

# force-clear the loading state after this many seconds
LOAD_TIMEOUT = 10.0


class Notifier:
    """Collects user-facing toasts; the UI layer drains `items`."""

    def __init__(self):
        self.items: List[Tuple[str, str]] = []

    def _push(self, level: str, message: str) -> None:
        self.items.append((level, message))
        logger.log(logging.ERROR if level == "error" else logging.INFO, "toast[%s] %s", level, message)

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    def info(self, message: str) -> None:
        self._push("info", message)


class SwipeSession:
    """
    State behind the swipe page: the candidate deck, the cursor into it,
    the local match counter and the in-flight flag that drops a second swipe
    while one is outstanding.
    """

    def __init__(self, client: FindMeClient, guard: SessionGuard, storage: MutableMapping[str, str],
                 notifier: Optional[Notifier] = None, load_timeout: float = LOAD_TIMEOUT,
                 clock: Callable[[], float] = time.time):
        self.client = client
        self.guard = guard
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.load_timeout = load_timeout
        self._clock = clock

        self.user: Optional[Dict[str, Any]] = None
        self.user_type: Optional[str] = None
        self.candidates: List[Dict[str, Any]] = []
        self.index = 0
        self.matches = 0
        self.loading = True
        self.swiping = False
        self.cursor: Optional[SessionCursor] = None

    @property
    def needs_profile(self) -> bool:
        return self.user is not None and self.user_type is None and not self.loading

    @property
    def current(self) -> Optional[Dict[str, Any]]:
        if self.index >= len(self.candidates):
            return None
        return self.candidates[self.index]

    @property
    def has_more(self) -> bool:
        return self.index < len(self.candidates)

    async def load(self) -> None:
        self.loading = True
        try:
            await asyncio.wait_for(self._initialize(), timeout=self.load_timeout)
        except asyncio.TimeoutError:
            logger.warning("Loading timeout - resetting")
        except AuthApiError as exc:
            await self.guard.handle_auth_error(exc)
        except (ApiError, httpx.HTTPError):
            logger.exception("Error initializing swipe session")
            self.notifier.error("Failed to load profiles")
        finally:
            self.loading = False

    async def _initialize(self) -> None:
        self.user = await self.guard.resolve()
        if not self.user:
            return
        await self._load_candidates(restore=True)

    async def _load_candidates(self, restore: bool) -> None:
        data = await self.client.candidates()
        self.user_type = data.get("user_type")
        self.candidates = data.get("items") or []
        self.matches = data.get("match_count", 0)
        if not self.user_type:
            return

        self.cursor = SessionCursor(self.storage, self.user["id"], self.user_type, clock=self._clock)
        if not self.candidates:
            what = "job vacancies" if self.user_type == "job_seeker" else "profiles"
            self.notifier.info(f"No more {what} available right now.")
        if restore:
            saved = self.cursor.load()
            if 0 < saved < len(self.candidates):
                logger.info("Restored swipe position: %s", saved)
                self.index = saved

    async def swipe(self, decision: str) -> Optional[Dict[str, Any]]:
        """
        Record a like/pass on the current candidate. Returns the server's
        outcome, or None when the swipe was dropped or failed.
        """
        if self.swiping or not self.user:
            logger.debug("Swipe dropped (in flight=%s)", self.swiping)
            return None
        candidate = self.current
        if candidate is None:
            return None

        self.swiping = True
        try:
            outcome = await self.client.swipe(candidate["kind"], candidate["id"], decision)
        except AuthApiError as exc:
            await self.guard.handle_auth_error(exc)
            return None
        except (ApiError, httpx.HTTPError):
            logger.exception("Failed to record swipe on %s", candidate["id"])
            self.notifier.error("Failed to record swipe")
            return None
        finally:
            self.swiping = False

        if outcome.get("match"):
            self.matches += 1
            self.notifier.success("It's a match!")
        self._advance()
        return outcome

    def _advance(self) -> None:
        if self.cursor is None:
            self.index += 1
            return
        self.index = self.cursor.advance(self.index, len(self.candidates))

    async def reset(self) -> None:
        """Start over: drop the saved position and fetch a fresh deck."""
        if not self.user:
            return
        self.index = 0
        if self.cursor is not None:
            self.cursor.clear()
        self.candidates = []
        try:
            await self._load_candidates(restore=False)
        except AuthApiError as exc:
            await self.guard.handle_auth_error(exc)
            return
        except (ApiError, httpx.HTTPError):
            logger.exception("Error reloading candidates")
            self.notifier.error("Failed to load profiles")
            return
        what = "vacancies" if self.user_type == "job_seeker" else "profiles"
        self.notifier.success(f"Refreshed! Showing all available {what} (excluding your likes)")
