"""
Exception types raised by the crawler components.
"""


class CrawlError(Exception):
    """Base class for all crawl errors."""
    pass


class FetchError(CrawlError):
    """Raised when a page could not be fetched."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not fetch data from {url}: {reason}")


class NoContentFoundError(CrawlError):
    """Raised when a page has no main content area to extract anchors from."""

    def __init__(self, url: str = ""):
        self.url = url
        super().__init__(f"Could not find any content in the page with url {url}")


class ChannelError(CrawlError):
    """Raised when sending a task on a channel that no longer has receivers."""
    pass


class GraphIntegrityError(CrawlError):
    """Raised when a uniqueness invariant of the graph store is broken."""
    pass


class ExportError(CrawlError):
    """Raised when the crawled graph cannot be written out."""
    pass


class CrawlInterruptedError(CrawlError):
    """Raised when a crawl was stopped before the pool became idle."""
    pass
