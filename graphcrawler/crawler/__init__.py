"""
Crawler core components.
"""

from .errors import (
    CrawlError, FetchError, NoContentFoundError, ChannelError,
    GraphIntegrityError, ExportError, CrawlInterruptedError
)
from .task_channel import TaskChannel, CrawlTask
from .termination import TerminationCoordinator
from .fetcher import WebFetcher, FetchResult, KeywordFilter
from .parser import AnchorExtractor
from .normalizer import URLNormalizer

__all__ = [
    'CrawlError', 'FetchError', 'NoContentFoundError', 'ChannelError',
    'GraphIntegrityError', 'ExportError', 'CrawlInterruptedError',
    'TaskChannel', 'CrawlTask', 'TerminationCoordinator',
    'WebFetcher', 'FetchResult', 'KeywordFilter',
    'AnchorExtractor', 'URLNormalizer'
]
