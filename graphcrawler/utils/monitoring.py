"""
Monitoring and metrics collection for the graph crawler.
"""

import time
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest, start_http_server


@dataclass
class CrawlStats:
    """Statistics for a crawl."""
    start_time: float = field(default_factory=time.time)
    tasks_processed: int = 0
    pages_skipped: int = 0
    tasks_enqueued: int = 0
    idle_polls: int = 0
    errors: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def pages_per_minute(self) -> float:
        elapsed_minutes = self.elapsed_time / 60
        return self.tasks_processed / elapsed_minutes if elapsed_minutes > 0 else 0


class MetricsCollector:
    """
    Collects crawler metrics.

    Keeps plain counters in a CrawlStats for the final report and mirrors
    them into Prometheus metrics registered on a private registry, so that
    several crawls in one process do not clash.
    """

    def __init__(self, enable_http: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.stats = CrawlStats()
        self._lock = threading.Lock()

        self.registry = CollectorRegistry()
        self.prometheus_port = prometheus_port

        self.tasks_processed = Counter(
            'crawler_tasks_processed_total',
            'Total number of crawl tasks taken from the channel',
            registry=self.registry
        )
        self.pages_skipped = Counter(
            'crawler_pages_skipped_total',
            'Pages abandoned without being registered',
            ['reason'],
            registry=self.registry
        )
        self.tasks_enqueued = Counter(
            'crawler_tasks_enqueued_total',
            'Follow-on tasks sent to the channel',
            registry=self.registry
        )
        self.idle_polls = Counter(
            'crawler_idle_polls_total',
            'Polls that found the channel empty',
            registry=self.registry
        )
        self.errors = Counter(
            'crawler_errors_total',
            'Total number of crawl errors',
            ['error_type'],
            registry=self.registry
        )
        self.pages = Gauge(
            'crawler_pages',
            'Number of registered pages',
            registry=self.registry
        )
        self.links = Gauge(
            'crawler_links',
            'Number of recorded links',
            registry=self.registry
        )
        self.queue_size = Gauge(
            'crawler_queue_size',
            'Number of tasks waiting in the channel',
            registry=self.registry
        )
        self.busy_workers = Gauge(
            'crawler_busy_workers',
            'Number of workers currently processing a task',
            registry=self.registry
        )

        if enable_http:
            start_http_server(prometheus_port, registry=self.registry)
            self.logger.info(f"Prometheus metrics server started on port {prometheus_port}")

    def record_task(self):
        with self._lock:
            self.stats.tasks_processed += 1
        self.tasks_processed.inc()

    def record_skip(self, reason: str):
        with self._lock:
            self.stats.pages_skipped += 1
        self.pages_skipped.labels(reason=reason).inc()

    def record_enqueued(self, count: int = 1):
        with self._lock:
            self.stats.tasks_enqueued += count
        self.tasks_enqueued.inc(count)

    def record_idle_poll(self):
        with self._lock:
            self.stats.idle_polls += 1
        self.idle_polls.inc()

    def record_error(self, error_type: str):
        with self._lock:
            self.stats.errors += 1
        self.errors.labels(error_type=error_type).inc()

    def update_graph(self, pages: int, links: int, queued: int, busy_workers: int):
        self.pages.set(pages)
        self.links.set(links)
        self.queue_size.set(queued)
        self.busy_workers.set(busy_workers)

    def get_stats(self) -> Dict[str, float]:
        with self._lock:
            return {
                'tasks_processed': self.stats.tasks_processed,
                'pages_skipped': self.stats.pages_skipped,
                'tasks_enqueued': self.stats.tasks_enqueued,
                'idle_polls': self.stats.idle_polls,
                'errors': self.stats.errors,
                'elapsed_time': self.stats.elapsed_time,
                'pages_per_minute': self.stats.pages_per_minute,
            }

    def export_metrics(self) -> bytes:
        """Metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)

