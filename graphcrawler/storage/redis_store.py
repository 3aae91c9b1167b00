"""
Redis-backed graph store.

Keeps the page registry in a Redis hash and the link set in a Redis set so
that external tools can watch the graph grow while the crawl runs.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple, Union

import redis

from .graph_store import GraphStore, Link, PageId
from ..utils.config import RedisConfig


def _decode(value: Union[bytes, str]) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value


class RedisGraphStore(GraphStore):
    """
    Graph store persisted in Redis.

    Workers of one crawl share a process-local re-entrant lock for
    ``transaction()``. Ids are still claimed with HSETNX, so a second writer
    on the same keys can never overwrite an assigned id.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = "graphcrawler",
                 reset: bool = True):
        self.redis_client = redis_client
        self.logger = logging.getLogger(__name__)

        self.pages_key = f"{key_prefix}:pages"
        self.links_key = f"{key_prefix}:links"

        self._lock = threading.RLock()

        if reset:
            # Crawls are not resumable, start from an empty graph
            self.redis_client.delete(self.pages_key, self.links_key)
            self.logger.info(f"Cleared graph keys under prefix '{key_prefix}'")

    @classmethod
    def from_config(cls, config: RedisConfig) -> 'RedisGraphStore':
        """Connect to the Redis server described by ``config``."""
        client = redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password,
            decode_responses=True
        )
        client.ping()
        return cls(client, key_prefix=config.key_prefix)

    @staticmethod
    def _link_member(source_id: PageId, target_id: PageId) -> str:
        return f"{source_id}:{target_id}"

    @contextmanager
    def transaction(self) -> Iterator['RedisGraphStore']:
        with self._lock:
            yield self

    def register_page(self, url: str) -> PageId:
        with self._lock:
            existing = self.redis_client.hget(self.pages_key, url)
            if existing is not None:
                return int(existing)

            page_id = self.redis_client.hlen(self.pages_key)
            if self.redis_client.hsetnx(self.pages_key, url, page_id):
                self.logger.debug(f"Registered page {page_id}: {url}")
                return page_id

            # Another writer registered the URL in between
            return int(self.redis_client.hget(self.pages_key, url))

    def get_page_id(self, url: str) -> Optional[PageId]:
        value = self.redis_client.hget(self.pages_key, url)
        return int(value) if value is not None else None

    def add_link(self, source_id: PageId, target_id: PageId) -> bool:
        added = self.redis_client.sadd(self.links_key, self._link_member(source_id, target_id))
        return bool(added)

    def has_link(self, source_id: PageId, target_id: PageId) -> bool:
        return bool(self.redis_client.sismember(
            self.links_key, self._link_member(source_id, target_id)
        ))

    def size(self) -> int:
        return self.redis_client.hlen(self.pages_key)

    def link_count(self) -> int:
        return self.redis_client.scard(self.links_key)

    def pages(self) -> Iterator[Tuple[str, PageId]]:
        for url, page_id in self.redis_client.hscan_iter(self.pages_key):
            yield _decode(url), int(page_id)

    def links(self) -> Iterator[Link]:
        for member in self.redis_client.sscan_iter(self.links_key):
            source, target = _decode(member).split(':', 1)
            yield int(source), int(target)

    def close(self):
        try:
            self.redis_client.close()
            self.logger.info("Redis graph store closed")
        except redis.RedisError as e:
            self.logger.error(f"Error closing Redis connection: {e}")
