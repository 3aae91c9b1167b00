"""
Graph Crawler

Crawls linked pages from a seed URL with a pool of worker threads and
builds the deduplicated graph of pages and links between them.
"""

__version__ = "1.0.0"
__description__ = "A multi-threaded crawler building the link graph of a site"
