"""
Logging utilities for the graph crawler.
"""

import logging
import logging.handlers
import json
import sys
from pathlib import Path
from typing import Any, MutableMapping, Tuple
from datetime import datetime, timezone

from .config import LoggingConfig


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'thread': record.threadName,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Fields attached by WorkerLogAdapter
        for key in ('worker_id', 'url', 'depth'):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, ensure_ascii=False)


class WorkerLogAdapter(logging.LoggerAdapter):
    """Logger adapter that tags every message with the worker that emitted it."""

    def __init__(self, logger: logging.Logger, worker_id: int):
        super().__init__(logger, {'worker_id': worker_id})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get('extra') or {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return f"[Worker {self.extra['worker_id']}] {msg}", kwargs

    def log_url_event(self, level: int, url: str, depth: int, message: str):
        """Log an event about a crawl task."""
        self.log(level, message, extra={'url': url, 'depth': depth})


def setup_logging(config: LoggingConfig, quiet_console: bool = False) -> logging.Logger:
    """
    Setup logging for the crawler.

    Args:
        config: Logging configuration
        quiet_console: Only show warnings and errors on the console

    Returns:
        Configured root logger
    """
    log_file = Path(config.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    if config.json:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(config.format)

    # Console output goes to stderr, stdout is reserved for the crawl summary
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING if quiet_console else logging.INFO)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.addHandler(_rotating_handler(log_file, logging.DEBUG, 50, 5, formatter))
    root_logger.addHandler(
        _rotating_handler(log_file.parent / 'errors.log', logging.ERROR, 10, 3, formatter)
    )

    for logger_name in ('urllib3', 'requests', 'redis'):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized (level {config.level}, file {log_file})")
    return root_logger


def _rotating_handler(path: Path, level: int, max_megabytes: int, backup_count: int,
                      formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_megabytes * 1024 * 1024,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def get_worker_logger(name: str, worker_id: int) -> WorkerLogAdapter:
    """Get a logger adapter for the given worker."""
    return WorkerLogAdapter(logging.getLogger(name), worker_id)
