"""
Seed history cache with an explicit lifetime policy.

Policies:
- none: rebuild from disk on every request
- process: build once, reuse until invalidated
- ttl: reuse for a fixed number of seconds, then rebuild
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from models.chat_models import Content
from services.conversation_builder import ConversationBuilder
from utils.logger import app_logger


@dataclass
class CacheEntry:
    """Cached seed turns with their expiry."""
    contents: tuple[Content, ...]
    expires_at: float  # inf for the process policy


class SeedHistoryCache:
    """
    Holds the seed history for the lifetime its policy allows.
    Only complete seed histories are cached, so a file that failed to load is retried next time.
    """

    POLICIES = ("none", "process", "ttl")

    def __init__(
        self,
        builder: ConversationBuilder,
        policy: str = "none",
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the seed history cache.

        Args:
            builder: Builder used to (re)create the seed history
            policy: One of POLICIES
            ttl_seconds: Entry lifetime for the ttl policy
            clock: Monotonic time source
        """
        if policy not in self.POLICIES:
            raise ValueError(f"Unknown seed cache policy: {policy}")

        self._builder = builder
        self._policy = policy
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._lock = threading.Lock()

        app_logger.info(f"Seed history cache policy: {policy}")

    @property
    def policy(self) -> str:
        return self._policy

    def get(self) -> list[Content]:
        """Return the seed history, rebuilding it when the policy requires."""
        if self._policy == "none":
            return self._builder.build_seed_history()

        with self._lock:
            now = self._clock()
            if self._entry is not None and now < self._entry.expires_at:
                app_logger.debug("Seed history cache HIT")
                return list(self._entry.contents)

            app_logger.debug("Seed history cache MISS")
            seed = self._builder.build()

            if seed.complete:
                expires_at = float('inf') if self._policy == "process" else now + self._ttl
                self._entry = CacheEntry(contents=tuple(seed.contents), expires_at=expires_at)
            else:
                app_logger.warning(f"Not caching partial seed history, failed files: {seed.failed_files}")
                self._entry = None

            return list(seed.contents)

    def invalidate(self) -> bool:
        """Drop the cached seed history. Returns True if an entry was removed."""
        with self._lock:
            removed = self._entry is not None
            self._entry = None

        app_logger.info(f"Seed history cache invalidated (entry removed: {removed})")
        return removed
