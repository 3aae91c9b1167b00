"""
Distributed termination detection for the worker pool.

Every worker owns one idle flag. A worker that finds the task channel empty
marks itself idle; a worker that dequeues a task marks every worker busy
again, since that task may still produce more work. The crawl is over when
all flags are idle at the same time.
"""

import logging
import threading
from typing import List, Optional

from .task_channel import CrawlTask, TaskChannel


class TerminationCoordinator:
    """
    Shared idle-flag vector guarding access to the task channel.

    Dequeuing a task and clearing the flags happen under one lock, and so do
    finding the channel empty and raising the caller's flag. When every flag
    is raised, no worker sits between receiving a task and sending its
    follow-on tasks, so the channel is empty and stays empty.
    """

    def __init__(self, channel: TaskChannel, num_workers: int):
        if num_workers < 1:
            raise ValueError("num_workers must be at least 1")

        self.channel = channel
        self.num_workers = num_workers
        self.logger = logging.getLogger(__name__)

        self._idle: List[bool] = [False] * num_workers
        self._lock = threading.Lock()
        self._aborted = threading.Event()

    def claim(self, worker_id: int) -> Optional[CrawlTask]:
        """
        Poll the channel on behalf of a worker.

        Returns the dequeued task after resetting every flag to busy, or None
        after marking the calling worker idle.
        """
        with self._lock:
            task = self.channel.try_receive()
            if task is not None:
                for i in range(self.num_workers):
                    self._idle[i] = False
                return task

            self._idle[worker_id] = True
            return None

    def idle_count(self) -> int:
        with self._lock:
            return sum(self._idle)

    def is_quiescent(self) -> bool:
        """True once every worker is idle with nothing left to claim."""
        with self._lock:
            return all(self._idle)

    def flags(self) -> List[bool]:
        """Snapshot of the idle flags."""
        with self._lock:
            return list(self._idle)

    def abort(self):
        """Make every worker leave its loop at its next poll."""
        self.logger.warning("Crawl aborted, stopping all workers")
        self._aborted.set()

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()
