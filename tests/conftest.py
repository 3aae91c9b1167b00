"""Shared fixtures for the graph crawler tests."""

import logging

import pytest

from graphcrawler.utils.config import CrawlerConfig

from .support import wiki


@pytest.fixture
def crawler_config():
    """Crawler configuration tuned for fast tests."""
    return CrawlerConfig(
        seed_url=wiki("A"),
        depth=2,
        num_workers=1,
        idle_backoff=0.005,
        progress_interval=0
    )


@pytest.fixture
def restore_logging():
    """Undo changes made to the root logger by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
