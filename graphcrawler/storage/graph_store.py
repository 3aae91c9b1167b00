"""
Graph store for crawled pages and the links between them.

The page registry maps each canonical URL to a unique integer id, the link
set holds (source_id, target_id) pairs. Workers mutate both while crawling,
so every backend offers ``transaction()`` to hold them together while a
single page's anchors are recorded.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Set, Tuple

PageId = int
Link = Tuple[PageId, PageId]


class GraphStore:
    """Abstract base class for graph store backends."""

    def transaction(self):
        """Context manager holding the registry and link set for a page's edges."""
        raise NotImplementedError

    def register_page(self, url: str) -> PageId:
        """Return the id of ``url``, assigning a fresh one on first discovery."""
        raise NotImplementedError

    def get_page_id(self, url: str) -> Optional[PageId]:
        """Return the id of ``url`` if it is registered."""
        raise NotImplementedError

    def add_link(self, source_id: PageId, target_id: PageId) -> bool:
        """Insert a link. Returns False if it was already present."""
        raise NotImplementedError

    def has_link(self, source_id: PageId, target_id: PageId) -> bool:
        raise NotImplementedError

    def size(self) -> int:
        """Number of registered pages."""
        raise NotImplementedError

    def link_count(self) -> int:
        raise NotImplementedError

    def pages(self) -> Iterator[Tuple[str, PageId]]:
        raise NotImplementedError

    def links(self) -> Iterator[Link]:
        raise NotImplementedError

    def get_stats(self) -> Dict[str, int]:
        return {
            'pages': self.size(),
            'links': self.link_count(),
        }

    def close(self):
        """Release backend resources."""
        pass


class InMemoryGraphStore(GraphStore):
    """
    Plain dict/set graph store without any locking.

    Only safe when a single thread touches it, which makes it the store of
    choice for deterministic unit tests.
    """

    def __init__(self):
        self._pages: Dict[str, PageId] = {}
        self._links: Set[Link] = set()
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def transaction(self) -> Iterator['InMemoryGraphStore']:
        yield self

    def register_page(self, url: str) -> PageId:
        page_id = self._pages.get(url)
        if page_id is None:
            page_id = len(self._pages)
            self._pages[url] = page_id
            self.logger.debug(f"Registered page {page_id}: {url}")
        return page_id

    def get_page_id(self, url: str) -> Optional[PageId]:
        return self._pages.get(url)

    def add_link(self, source_id: PageId, target_id: PageId) -> bool:
        link = (source_id, target_id)
        if link in self._links:
            return False
        self._links.add(link)
        return True

    def has_link(self, source_id: PageId, target_id: PageId) -> bool:
        return (source_id, target_id) in self._links

    def size(self) -> int:
        return len(self._pages)

    def link_count(self) -> int:
        return len(self._links)

    def pages(self) -> Iterator[Tuple[str, PageId]]:
        return iter(list(self._pages.items()))

    def links(self) -> Iterator[Link]:
        return iter(list(self._links))


class ConcurrentGraphStore(InMemoryGraphStore):
    """
    Graph store shared by worker threads.

    A single re-entrant lock guards the registry and the link set together.
    Every method takes it, so snapshots such as ``size()`` are consistent
    while the crawl runs, and ``transaction()`` keeps it for the duration of
    a page's edge insertion.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator['ConcurrentGraphStore']:
        with self._lock:
            yield self

    def register_page(self, url: str) -> PageId:
        with self._lock:
            return super().register_page(url)

    def get_page_id(self, url: str) -> Optional[PageId]:
        with self._lock:
            return super().get_page_id(url)

    def add_link(self, source_id: PageId, target_id: PageId) -> bool:
        with self._lock:
            return super().add_link(source_id, target_id)

    def has_link(self, source_id: PageId, target_id: PageId) -> bool:
        with self._lock:
            return super().has_link(source_id, target_id)

    def size(self) -> int:
        with self._lock:
            return super().size()

    def link_count(self) -> int:
        with self._lock:
            return super().link_count()

    def pages(self) -> Iterator[Tuple[str, PageId]]:
        with self._lock:
            return super().pages()

    def links(self) -> Iterator[Link]:
        with self._lock:
            return super().links()

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return super().get_stats()
