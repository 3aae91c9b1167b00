"""
Crawler scheduler that seeds the task channel, runs the worker pool and
collects the resulting graph.
"""

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from .errors import CrawlInterruptedError
from .fetcher import WebFetcher
from .normalizer import URLNormalizer
from .parser import AnchorExtractor
from .task_channel import CrawlTask, TaskChannel
from .termination import TerminationCoordinator
from .worker import CrawlWorker
from ..storage.graph_store import ConcurrentGraphStore, GraphStore
from ..utils.config import CrawlerConfig
from ..utils.monitoring import MetricsCollector


class CrawlerScheduler:
    """
    Coordinates one crawl.

    Sends the seed task, starts ``num_workers`` worker threads that share
    the channel, the termination coordinator and the graph store, and waits
    for all of them. A fatal error in any worker aborts the others and is
    re-raised from ``crawl()``. ``stop_crawling()``, or an interrupt while
    waiting for the workers, makes every worker leave at its next poll.
    """

    # How often the join wakes up to let signal handlers run
    join_poll_interval = 0.2

    def __init__(self, config: CrawlerConfig, store: Optional[GraphStore] = None,
                 fetcher: Optional[WebFetcher] = None,
                 extractor: Optional[AnchorExtractor] = None,
                 normalizer: Optional[URLNormalizer] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.store = store if store is not None else ConcurrentGraphStore()
        self.fetcher = fetcher or WebFetcher(
            user_agent=config.user_agent,
            request_timeout=config.request_timeout,
            keywords=config.keywords
        )
        self.extractor = extractor or AnchorExtractor(config.content_selector)
        self.normalizer = normalizer or URLNormalizer(
            site_root=config.site_root,
            content_prefix=config.content_prefix,
            reserved_prefix=config.reserved_prefix,
            keep_external=config.keep_external_links
        )
        self.metrics = metrics or MetricsCollector()

        self.num_workers = max(config.num_workers, 1)
        self.depth = max(config.depth, 1)

        self.channel = TaskChannel()
        self.coordinator = TerminationCoordinator(self.channel, self.num_workers)
        self.workers: List[CrawlWorker] = []
        self.is_running = False

        self._stop_reporter = threading.Event()
        self._stop_requested = threading.Event()

    def crawl(self, seed_url: Optional[str] = None) -> GraphStore:
        """
        Crawl from the seed URL until the pool is quiescent.

        Returns:
            The graph store holding every page and link found
        """
        if self.is_running:
            raise RuntimeError("Crawler is already running")
        if self.channel.closed:
            raise RuntimeError("A scheduler can only run one crawl")

        seed_url = seed_url or self.config.seed_url
        if not seed_url:
            raise ValueError("A seed URL is required")

        self.is_running = True
        self.logger.info(
            f"Starting crawl of {seed_url} with depth {self.depth} and {self.num_workers} workers"
        )

        try:
            self.channel.send(CrawlTask(url=seed_url, depth=self.depth))

            self.workers = [
                CrawlWorker(
                    worker_id=i,
                    store=self.store,
                    channel=self.channel,
                    coordinator=self.coordinator,
                    fetcher=self.fetcher,
                    extractor=self.extractor,
                    normalizer=self.normalizer,
                    idle_backoff=self.config.idle_backoff,
                    skip_failed_pages=self.config.skip_failed_pages,
                    metrics=self.metrics
                )
                for i in range(self.num_workers)
            ]

            reporter = self._start_reporter()
            try:
                self._run_workers()
            finally:
                self._stop_reporter.set()
                if reporter is not None:
                    reporter.join()

            self._report_progress()
            self._log_final_stats()

            if self._stop_requested.is_set():
                raise CrawlInterruptedError(
                    f"Crawl stopped before completion with {self.store.size()} pages "
                    f"and {self.store.link_count()} links"
                )
            return self.store

        finally:
            self.channel.close()
            self.is_running = False

    def _run_workers(self):
        """Run every worker in its own thread and propagate the first failure."""
        with ThreadPoolExecutor(max_workers=self.num_workers,
                                thread_name_prefix="crawl-worker") as executor:
            futures: Dict[Future, CrawlWorker] = {
                executor.submit(worker.run): worker for worker in self.workers
            }

            try:
                self._wait_for_workers(futures)
            except BaseException:
                self.logger.warning("Crawl interrupted, waiting for workers to finish their current page")
                self.coordinator.abort()
                raise

        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            for error in errors:
                self.logger.error(f"Worker failed: {error}")
                self.metrics.record_error(type(error).__name__)
            raise errors[0]

    def _wait_for_workers(self, futures):
        """Join the workers, aborting the pool as soon as one of them fails."""
        pending = set(futures)
        while pending:
            done, pending = wait(pending, timeout=self.join_poll_interval,
                                 return_when=FIRST_EXCEPTION)
            if not self.coordinator.aborted and any(f.exception() is not None for f in done):
                self.coordinator.abort()

    def stop_crawling(self):
        """Stop the crawl gracefully; ``crawl()`` then raises CrawlInterruptedError."""
        self.logger.info("Stopping crawler...")
        self._stop_requested.set()
        self.coordinator.abort()

    def _start_reporter(self) -> Optional[threading.Thread]:
        if not self.config.progress_interval:
            return None
        self._stop_reporter.clear()
        reporter = threading.Thread(
            target=self._progress_reporter, name="crawl-progress", daemon=True
        )
        reporter.start()
        return reporter

    def _progress_reporter(self):
        """Periodically log crawl progress."""
        while not self._stop_reporter.wait(self.config.progress_interval):
            self._report_progress()

    def _report_progress(self):
        pages = self.store.size()
        links = self.store.link_count()
        queued = len(self.channel)
        busy = self.num_workers - self.coordinator.idle_count()
        self.metrics.update_graph(pages, links, queued, busy)
        self.logger.info(
            f"Crawl Progress: Pages={pages}, Links={links}, Queued={queued}, "
            f"BusyWorkers={busy}/{self.num_workers}"
        )

    def _log_final_stats(self):
        stats = self.metrics.get_stats()
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages found: {self.store.size()}")
        self.logger.info(f"Links found: {self.store.link_count()}")
        self.logger.info(f"Tasks processed: {stats['tasks_processed']}")
        self.logger.info(f"Pages skipped: {stats['pages_skipped']}")
        self.logger.info(f"Total time: {stats['elapsed_time']:.2f} seconds")
        self.logger.info(f"Average rate: {stats['pages_per_minute']:.1f} pages/min")
        self.logger.info(f"Channel stats: {self.channel.get_stats()}")
        self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        stats = self.metrics.get_stats()
        stats.update({
            'pages': self.store.size(),
            'links': self.store.link_count(),
            'queued': len(self.channel),
            'idle_workers': self.coordinator.idle_count(),
            'is_running': self.is_running
        })
        return stats
