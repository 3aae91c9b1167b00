"""
Command line interface for the graph crawler.
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

import redis

from graphcrawler import __version__
from graphcrawler.crawler.errors import CrawlError, CrawlInterruptedError
from graphcrawler.crawler.scheduler import CrawlerScheduler
from graphcrawler.storage.exporter import GraphExporter
from graphcrawler.storage.graph_store import ConcurrentGraphStore, GraphStore
from graphcrawler.storage.redis_store import RedisGraphStore
from graphcrawler.utils.config import Config, ConfigError, load_config
from graphcrawler.utils.logger import setup_logging
from graphcrawler.utils.monitoring import MetricsCollector


class CrawlerApp:
    """Main application class for the graph crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.store: Optional[GraphStore] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self) -> Dict[int, Any]:
        """
        Turn SIGINT and SIGTERM into a graceful stop of the running crawl.

        Returns:
            The previous handlers, for restore_signal_handlers
        """
        def signal_handler(signum, frame):
            if self.scheduler is None or not self.scheduler.is_running:
                raise KeyboardInterrupt
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            self.scheduler.stop_crawling()

        # Handlers can only be installed from the main thread
        if threading.current_thread() is not threading.main_thread():
            return {}
        return {
            signum: signal.signal(signum, signal_handler)
            for signum in (signal.SIGINT, signal.SIGTERM)
        }

    def restore_signal_handlers(self, previous: Dict[int, Any]):
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def create_store(self, config: Config) -> GraphStore:
        if config.storage.type == 'redis':
            self.logger.info(f"Using Redis graph store at {config.redis.host}:{config.redis.port}")
            return RedisGraphStore.from_config(config.redis)
        return ConcurrentGraphStore()

    def run(self, config: Config) -> int:
        """Run the crawl described by ``config``."""
        crawler_config = config.crawler

        exporter = None
        if config.storage.output_prefix:
            exporter = GraphExporter(config.storage.output_prefix, undirected=crawler_config.undirected)

        previous_handlers = self.setup_signal_handlers()
        try:
            if exporter is not None:
                exporter.check_output_paths()

            self.logger.info("=== GRAPH CRAWLER STARTING ===")
            self.logger.info(f"Seed URL: {crawler_config.seed_url}")
            self.logger.info(f"Depth: {crawler_config.depth}")
            self.logger.info(f"Workers: {crawler_config.num_workers}")
            self.logger.info(f"Keywords: {crawler_config.keywords}")
            self.logger.info(f"Storage type: {config.storage.type}")

            self.store = self.create_store(config)
            metrics = MetricsCollector(
                enable_http=config.monitoring.metrics_enabled,
                prometheus_port=config.monitoring.prometheus_port
            )
            self.scheduler = CrawlerScheduler(crawler_config, store=self.store, metrics=metrics)
            self.scheduler.crawl()

            if exporter is not None:
                exporter.export(self.store)
            else:
                print(f"Found {self.store.size()} pages and {self.store.link_count()} links")

        except CrawlInterruptedError as e:
            self.logger.warning(str(e))
            return 1

        except CrawlError as e:
            self.logger.error(f"Crawl failed: {e}", exc_info=True)
            return 1

        except redis.RedisError as e:
            self.logger.error(f"Graph store error: {e}")
            return 1

        finally:
            self.restore_signal_handlers(previous_handlers)
            if self.scheduler:
                self.scheduler.fetcher.close()
            if self.store:
                self.store.close()
            self.logger.info("=== GRAPH CRAWLER FINISHED ===")

        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl linked pages from a seed URL and build the graph of links between them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  graphcrawler https://en.wikipedia.org/wiki/Graph_theory -d 2
  graphcrawler https://en.wikipedia.org/wiki/Dragon -k dragon wyvern -o dragons
  graphcrawler https://en.wikipedia.org/wiki/Python -t 8 --undirected -o python
  graphcrawler --config config.yaml
        """
    )

    parser.add_argument('url', nargs='?', help='URL to crawl from')
    parser.add_argument('-k', '--keywords', nargs='+',
                        help='Only keep pages containing at least one of these keywords')
    parser.add_argument('-d', '--depth', type=int, help='Depth of the crawl (default: 5)')
    parser.add_argument('-o', '--output-file',
                        help='Prefix of the output files: <prefix>_edges.csv and <prefix>_nodes.csv')
    parser.add_argument('-t', '--num-threads', type=int,
                        help='Number of worker threads (default: 4)')
    parser.add_argument('--undirected', action='store_true', default=None,
                        help='Only save links present in both directions')
    parser.add_argument('--keep-external-links', action='store_true', default=None,
                        help='Keep links that leave the crawled site')
    parser.add_argument('--skip-failed-pages', action='store_true', default=None,
                        help='Skip pages that cannot be fetched instead of aborting the crawl')
    parser.add_argument('--storage', choices=['memory', 'redis'],
                        help='Graph store backend (default: memory)')
    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--log-level', help='Logging level (default: INFO)')
    parser.add_argument('--version', action='version', version=f'graphcrawler {__version__}')
    return parser


def config_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Map command line arguments onto configuration sections."""
    return {
        'crawler': {
            'seed_url': args.url,
            'keywords': args.keywords,
            'depth': args.depth,
            'num_workers': args.num_threads,
            'undirected': args.undirected,
            'keep_external_links': args.keep_external_links,
            'skip_failed_pages': args.skip_failed_pages,
        },
        'storage': {
            'type': args.storage,
            'output_prefix': args.output_file,
        },
        'logging': {
            'level': args.log_level,
        },
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, config_overrides(args))
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)

    app = CrawlerApp()
    try:
        return app.run(config)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1

