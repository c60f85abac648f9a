"""Thread identity and per-thread turn serialization."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from gateway_agent.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


@dataclass
class ThreadInfo:
    """Bookkeeping for one conversation thread."""

    thread_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))
    turn_count: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def update_activity(self) -> None:
        self.last_activity = datetime.now(UTC)


class ThreadManager:
    """Hands out thread ids and the lock that serializes turns on a thread."""

    def __init__(self, idle_timeout_minutes: int | None = None):
        """Initialize the thread manager.

        Args:
            idle_timeout_minutes: Forget idle threads after this long; keep them forever if None
        """
        self.threads: dict[str, ThreadInfo] = {}
        self.idle_timeout = timedelta(minutes=idle_timeout_minutes) if idle_timeout_minutes else None

    def get_or_create(self, thread_id: str | None = None) -> ThreadInfo:
        """Return the thread for ``thread_id``, creating it (and an id) if needed."""
        self._cleanup_idle_threads()

        if thread_id and thread_id in self.threads:
            thread = self.threads[thread_id]
            thread.update_activity()
            return thread

        new_thread_id = thread_id or self.generate_thread_id()
        thread = ThreadInfo(thread_id=new_thread_id)
        self.threads[new_thread_id] = thread
        logger.debug(f"Created thread {new_thread_id}")
        return thread

    def generate_thread_id(self) -> str:
        return cuid()

    def thread_count(self) -> int:
        self._cleanup_idle_threads()
        return len(self.threads)

    def _cleanup_idle_threads(self) -> None:
        if self.idle_timeout is None:
            return

        now = datetime.now(UTC)
        expired = [
            thread_id
            for thread_id, thread in self.threads.items()
            if now - thread.last_activity > self.idle_timeout and not thread.lock.locked()
        ]
        for thread_id in expired:
            logger.debug(f"Forgetting idle thread {thread_id}")
            del self.threads[thread_id]
