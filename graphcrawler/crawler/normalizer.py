"""
URL normalization for anchors found in crawled pages.
"""

from typing import Optional


class URLNormalizer:
    """
    Turns raw href values into canonical absolute URLs, or rejects them.

    Internal links are site-relative paths starting with ``/``. Anything else
    (fragment-only links, absolute URLs to other sites) is external and is
    only kept, verbatim, when ``keep_external`` is set.
    """

    def __init__(self, site_root: str = "https://en.wikipedia.org",
                 content_prefix: str = "/wiki/", reserved_prefix: str = "/w",
                 keep_external: bool = False):
        self.site_root = site_root.rstrip('/')
        self.content_prefix = content_prefix
        self.reserved_prefix = reserved_prefix
        self.keep_external = keep_external

    def normalize(self, href: str) -> Optional[str]:
        """Return the canonical URL for ``href`` or None if it is rejected."""
        href = href.strip()
        if not href:
            return None

        if not href.startswith('/'):
            return href if self.keep_external else None

        # Namespaced pages such as File: or Special:
        if ':' in href:
            return None

        # Non-content paths such as /w/index.php
        if href.startswith(self.reserved_prefix) and not href.startswith(self.content_prefix.rstrip('/')):
            return None

        path, _, _fragment = href.partition('#')
        return self.site_root + path

    def is_internal(self, url: str) -> bool:
        """True for content pages of the crawled site, which may be followed."""
        return url.startswith(self.site_root + self.content_prefix)
