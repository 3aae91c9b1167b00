"""
Crawl worker: the loop each thread of the pool runs.
"""

import logging
import time
from typing import List, Optional

from .errors import CrawlError, FetchError, GraphIntegrityError, NoContentFoundError
from .fetcher import WebFetcher
from .normalizer import URLNormalizer
from .parser import AnchorExtractor
from .task_channel import CrawlTask, TaskChannel
from .termination import TerminationCoordinator
from ..storage.graph_store import GraphStore
from ..utils.logger import get_worker_logger
from ..utils.monitoring import MetricsCollector


class CrawlWorker:
    """
    Pulls tasks from the shared channel until the pool is quiescent.

    For every task the page is fetched and its anchors extracted outside of
    any lock; the page and all its outbound links are then recorded in one
    graph store transaction. Newly discovered internal pages are sent back
    to the channel while depth remains.
    """

    def __init__(self, worker_id: int, store: GraphStore, channel: TaskChannel,
                 coordinator: TerminationCoordinator, fetcher: WebFetcher,
                 extractor: AnchorExtractor, normalizer: URLNormalizer,
                 idle_backoff: float = 0.5, skip_failed_pages: bool = False,
                 metrics: Optional[MetricsCollector] = None):
        self.worker_id = worker_id
        self.store = store
        self.channel = channel
        self.coordinator = coordinator
        self.fetcher = fetcher
        self.extractor = extractor
        self.normalizer = normalizer
        self.idle_backoff = idle_backoff
        self.skip_failed_pages = skip_failed_pages
        self.metrics = metrics

        self.logger = get_worker_logger(__name__, worker_id)
        self.tasks_processed = 0

    def run(self) -> int:
        """
        Crawl until every worker is idle or the crawl is aborted.

        Returns:
            Number of tasks this worker processed
        """
        self.logger.debug("Started")
        num_workers = self.coordinator.num_workers

        while not self.coordinator.aborted:
            task = self.coordinator.claim(self.worker_id)

            if task is not None:
                self.logger.log_url_event(
                    logging.INFO, task.url, task.depth,
                    f"Scraping {task.url} with depth: {task.depth}"
                )
                if self.metrics:
                    self.metrics.record_task()
                self.process(task)
                self.tasks_processed += 1
                continue

            if self.metrics:
                self.metrics.record_idle_poll()

            idle_count = self.coordinator.idle_count()
            self.logger.debug(f"{idle_count} workers stuck with nothing to do")

            if idle_count == num_workers:
                if not self.channel.is_empty():
                    raise CrawlError(
                        f"Expected task channel to be empty, found {len(self.channel)} tasks"
                    )
                self.logger.info("All workers have nothing to do. Stopping")
                break

            time.sleep(self.idle_backoff)

        self.logger.debug(f"Finished after {self.tasks_processed} tasks")
        return self.tasks_processed

    def process(self, task: CrawlTask):
        """Crawl a single page and record its outbound links."""
        anchors = self._fetch_anchors(task)
        if not anchors:
            return

        follow_ups = self._record_page(task, anchors)

        for child in follow_ups:
            self.logger.debug(f"Adding {child.url} to the queue with depth: {child.depth}")
            self.channel.send(child)

        if follow_ups and self.metrics:
            self.metrics.record_enqueued(len(follow_ups))

    def _fetch_anchors(self, task: CrawlTask) -> List[str]:
        """Fetch the page and return its normalized anchors, or [] to skip it."""
        try:
            result = self.fetcher.fetch(task.url)
        except FetchError as e:
            if not self.skip_failed_pages:
                raise
            self.logger.warning(f"Skipping {task.url}: {e}")
            if self.metrics:
                self.metrics.record_error(type(e).__name__)
            self._skip('fetch_error')
            return []

        if not result.found:
            self.logger.info(f"Skipping {task.url}")
            self._skip('filtered')
            return []

        try:
            raw_anchors = self.extractor.extract_anchors(result.content, task.url)
        except NoContentFoundError:
            self.logger.info(f"Skipping {task.url}, no content found")
            self._skip('no_content')
            return []

        anchors = []
        for href in raw_anchors:
            url = self.normalizer.normalize(href)
            if url is not None:
                anchors.append(url)

        if not anchors:
            self.logger.info(f"No links found in page {task.url}")
            self._skip('no_links')

        return anchors

    def _record_page(self, task: CrawlTask, anchors: List[str]) -> List[CrawlTask]:
        """
        Register the page and its links in one transaction.

        Returns:
            Follow-on tasks for the internal pages discovered here
        """
        follow_ups: List[CrawlTask] = []

        with self.store.transaction() as store:
            source_id = store.register_page(task.url)

            for anchor in anchors:
                anchor_id = store.get_page_id(anchor)
                if anchor_id is not None:
                    store.add_link(source_id, anchor_id)
                    continue

                anchor_id = store.register_page(anchor)
                if not store.add_link(source_id, anchor_id):
                    raise GraphIntegrityError(
                        f"Link ({source_id}, {anchor_id}) already exists for newly registered page {anchor}"
                    )

                if task.depth > 1 and self.normalizer.is_internal(anchor):
                    follow_ups.append(task.child(anchor))

        return follow_ups

    def _skip(self, reason: str):
        if self.metrics:
            self.metrics.record_skip(reason)
