"""
Web page fetcher with keyword filtering.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import requests

from .errors import FetchError


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int = 0
    content: Optional[str] = None
    filtered: bool = False
    fetch_time: float = 0.0

    @property
    def found(self) -> bool:
        """True when the page has content and passed the keyword filter."""
        return not self.filtered and bool(self.content)


class KeywordFilter:
    """
    Decides whether a page counts as found.

    Without keywords every page is found. With keywords a page is found if
    any keyword occurs in its content, ignoring case.
    """

    def __init__(self, keywords: Optional[Iterable[str]] = None):
        self.keywords: Optional[List[str]] = (
            [k.lower() for k in keywords] if keywords is not None else None
        )

    def matches(self, content: str) -> bool:
        if self.keywords is None:
            return True
        lower_content = content.lower()
        return any(keyword in lower_content for keyword in self.keywords)


class WebFetcher:
    """
    Fetches web pages for the crawl workers.

    Each worker thread gets its own requests session. Transport failures are
    raised as FetchError; HTTP error statuses are not, their body is handed
    to the extractor like any other page.
    """

    def __init__(self, user_agent: str, request_timeout: int = 30,
                 keywords: Optional[Iterable[str]] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.keyword_filter = KeywordFilter(keywords)

        self.logger = logging.getLogger(__name__)
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'filtered_pages': 0,
            'total_bytes_downloaded': 0
        }
        self._stats_lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _session(self) -> requests.Session:
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({'User-Agent': self.user_agent})
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def _count(self, key: str, amount: int = 1):
        with self._stats_lock:
            self.stats[key] += amount

    def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Returns:
            FetchResult with the page content, or with ``filtered`` set when
            the page is empty or fails the keyword filter

        Raises:
            FetchError: the request could not be completed
        """
        start_time = time.time()
        self._count('total_requests')

        try:
            response = self._session().get(url, timeout=self.request_timeout)
            content = response.text
        except requests.RequestException as e:
            self._count('failed_requests')
            raise FetchError(url, str(e)) from e

        fetch_time = time.time() - start_time
        self._count('successful_requests')
        self._count('total_bytes_downloaded', len(response.content))

        if response.status_code >= 400:
            self.logger.debug(f"Fetched {url} with status {response.status_code}")

        if not content or not self.keyword_filter.matches(content):
            self._count('filtered_pages')
            return FetchResult(
                url=url,
                status_code=response.status_code,
                filtered=True,
                fetch_time=fetch_time
            )

        self.logger.debug(f"Fetched {url}: {response.status_code} ({len(content)} chars)")
        return FetchResult(
            url=url,
            status_code=response.status_code,
            content=content,
            fetch_time=fetch_time
        )

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        with self._stats_lock:
            return self.stats.copy()

    def close(self):
        """Close every session opened by the worker threads."""
        with self._sessions_lock:
            for session in self._sessions:
                session.close()
            self._sessions.clear()
        self.logger.debug("WebFetcher sessions closed")
