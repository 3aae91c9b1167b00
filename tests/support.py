"""Test doubles and page builders shared by the test modules."""

import random
import threading
import time
from typing import Dict, Iterable, Optional, Set

from graphcrawler.crawler.errors import FetchError
from graphcrawler.crawler.fetcher import FetchResult, KeywordFilter

SITE = "https://en.wikipedia.org"


def wiki(title: str) -> str:
    """Canonical URL of a content page."""
    return f"{SITE}/wiki/{title}"


def make_page(hrefs: Iterable[str], body_text: str = "") -> str:
    """HTML page with the given hrefs inside its main content area."""
    anchors = "\n".join(f'<a href="{href}">{href}</a>' for href in hrefs)
    return f"""<!DOCTYPE html>
<html>
<head><title>Test page</title></head>
<body>
  <div id="mw-navigation"><a href="/wiki/Main_Page">Main page</a></div>
  <div id="bodyContent">
    <p>{body_text}</p>
    {anchors}
  </div>
</body>
</html>"""


class FakeFetcher:
    """
    Serves pages from an in-memory site.

    ``site`` maps a page URL to the hrefs found on it. URLs missing from the
    site come back as pages without a main content area.
    """

    def __init__(self, site: Dict[str, Iterable[str]], keywords=None,
                 texts: Optional[Dict[str, str]] = None,
                 failing: Optional[Set[str]] = None, max_delay: float = 0.0):
        self.site = {url: list(hrefs) for url, hrefs in site.items()}
        self.texts = texts or {}
        self.failing = failing or set()
        self.keyword_filter = KeywordFilter(keywords)
        self.max_delay = max_delay
        self.fetched = []
        self._lock = threading.Lock()
        self._random = random.Random(1234)

    def fetch(self, url: str) -> FetchResult:
        with self._lock:
            self.fetched.append(url)
            delay = self._random.uniform(0, self.max_delay) if self.max_delay else 0
        if delay:
            time.sleep(delay)

        if url in self.failing:
            raise FetchError(url, "connection refused")

        if url not in self.site:
            return FetchResult(url=url, status_code=404, content="<html><body>Not found</body></html>")

        content = make_page(self.site[url], self.texts.get(url, ""))
        if not self.keyword_filter.matches(content):
            return FetchResult(url=url, status_code=200, filtered=True)
        return FetchResult(url=url, status_code=200, content=content)

    def fetch_count(self, url: str) -> int:
        with self._lock:
            return self.fetched.count(url)

    def get_stats(self):
        with self._lock:
            return {'total_requests': len(self.fetched)}

    def close(self):
        pass

