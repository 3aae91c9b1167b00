"""
Task channel shared by the crawl workers.
Unbounded multi-producer multi-consumer FIFO of crawl tasks.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import ChannelError


@dataclass(frozen=True)
class CrawlTask:
    """A URL to crawl together with its remaining depth budget."""
    url: str
    depth: int
    parent_url: Optional[str] = None
    discovered_time: float = field(default_factory=time.time, compare=False)

    def __post_init__(self):
        if self.depth < 1:
            raise ValueError(f"Task depth must be at least 1, got {self.depth}")

    def child(self, url: str) -> 'CrawlTask':
        """Create the follow-on task for a link found on this task's page."""
        return CrawlTask(url=url, depth=self.depth - 1, parent_url=self.url)


class TaskChannel:
    """
    Unbounded FIFO queue of crawl tasks.

    ``send`` never blocks and never drops a task. ``try_receive`` never blocks
    either: it returns ``None`` when nothing is queued right now, which is a
    transient condition and not a closed channel. The channel is only closed
    by the scheduler once every worker has been joined.
    """

    def __init__(self):
        self._queue: "queue.Queue[CrawlTask]" = queue.Queue()
        self._closed = threading.Event()
        self.logger = logging.getLogger(__name__)

        self.stats = {
            'total_sent': 0,
            'total_received': 0,
        }
        self._stats_lock = threading.Lock()

    def send(self, task: CrawlTask):
        """Queue a task. Raises ChannelError if the channel was closed."""
        if self._closed.is_set():
            raise ChannelError(f"Could not send {task.url} to internal channel: channel is closed")

        self._queue.put_nowait(task)
        with self._stats_lock:
            self.stats['total_sent'] += 1
        self.logger.debug(f"Queued task: {task.url} (depth {task.depth})")

    def try_receive(self) -> Optional[CrawlTask]:
        """Return the next task, or None if the channel is empty right now."""
        try:
            task = self._queue.get_nowait()
        except queue.Empty:
            return None

        with self._stats_lock:
            self.stats['total_received'] += 1
        return task

    def close(self):
        """Refuse any further task."""
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def is_empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()

    def get_stats(self):
        """Get channel statistics."""
        with self._stats_lock:
            stats = self.stats.copy()
        stats['queued'] = len(self)
        return stats
