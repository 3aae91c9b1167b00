"""
Configuration management for the graph crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, get_args, get_origin
from dataclasses import dataclass, field, fields


logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when the configuration is invalid."""
    pass


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: Optional[str] = None
    depth: int = 5
    num_workers: int = 4
    keywords: Optional[List[str]] = None
    keep_external_links: bool = False
    undirected: bool = False
    idle_backoff: float = 0.5
    request_timeout: int = 30
    user_agent: str = "graphcrawler/1.0"
    site_root: str = "https://en.wikipedia.org"
    content_prefix: str = "/wiki/"
    reserved_prefix: str = "/w"
    content_selector: str = "#bodyContent"
    skip_failed_pages: bool = False
    progress_interval: float = 30.0


@dataclass
class StorageConfig:
    """Configuration for the graph store and its export."""
    type: str = "memory"
    output_prefix: Optional[str] = None


@dataclass
class RedisConfig:
    """Configuration for Redis."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    key_prefix: str = "graphcrawler"


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: str = "logs/crawler.log"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    """Instantiate a config dataclass, rejecting unknown keys."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {', '.join(sorted(unknown))}")
    return section_cls(**data)


def _type_name(expected) -> str:
    if get_origin(expected) is list:
        return f"a list of {get_args(expected)[0].__name__}"
    return expected.__name__


def _check_types(section, name: str):
    """Raise ConfigError for any value that does not match its field type."""
    for f in fields(section):
        value = getattr(section, f.name)
        expected = f.type

        if get_origin(expected) is Union:
            if value is None:
                continue
            expected = next(arg for arg in get_args(expected) if arg is not type(None))

        if get_origin(expected) is list:
            item_type = get_args(expected)[0]
            valid = isinstance(value, list) and all(isinstance(item, item_type) for item in value)
        elif expected is float:
            valid = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif expected is int:
            valid = isinstance(value, int) and not isinstance(value, bool)
        else:
            valid = isinstance(value, expected)

        if not valid:
            raise ConfigError(f"{name}.{f.name} must be {_type_name(expected)}, got {value!r}")


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
        """
        Load configuration from the YAML file, if any, then apply overrides.

        Args:
            overrides: Per-section values taking precedence over the file,
                e.g. ``{'crawler': {'depth': 2}}``. None values are ignored.
        """
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}

            if not isinstance(config_data, dict):
                raise ConfigError(f"Configuration file {self.config_path} must contain a mapping")

        for section, values in (overrides or {}).items():
            merged = dict(config_data.get(section) or {})
            merged.update({k: v for k, v in values.items() if v is not None})
            config_data[section] = merged

        unknown_sections = set(config_data) - {f.name for f in fields(Config)}
        if unknown_sections:
            raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown_sections))}")

        self._config = Config(
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            storage=_build_section(StorageConfig, config_data.get('storage'), 'storage'),
            redis=_build_section(RedisConfig, config_data.get('redis'), 'redis'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring'),
        )

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ConfigError("Configuration not loaded")

        crawler = self._config.crawler

        # A single keyword may be written as a plain string
        if isinstance(crawler.keywords, str):
            crawler.keywords = [crawler.keywords]

        for f in fields(Config):
            _check_types(getattr(self._config, f.name), f.name)

        if not crawler.seed_url:
            raise ConfigError("A seed URL must be provided")

        if crawler.depth < 1:
            logger.warning("Depth must be greater than 0. Setting it to 1.")
            crawler.depth = 1

        if crawler.num_workers < 1:
            logger.warning("Number of workers must be greater than 0. Setting it to 1.")
            crawler.num_workers = 1

        if crawler.idle_backoff < 0:
            raise ConfigError("idle_backoff must be non-negative")

        if crawler.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        if crawler.progress_interval < 0:
            raise ConfigError("progress_interval must be non-negative")

        if crawler.keywords is not None:
            crawler.keywords = [k for k in crawler.keywords if k]
            if not crawler.keywords:
                raise ConfigError("keywords must contain at least one non-empty keyword")

        if self._config.storage.type not in ['memory', 'redis']:
            raise ConfigError("Storage type must be 'memory' or 'redis'")

        if not isinstance(logging.getLevelName(self._config.logging.level.upper()), int):
            raise ConfigError(f"Unknown logging level: {self._config.logging.level}")

        logger.debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ConfigError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
    """Load configuration from file and command line overrides."""
    return ConfigManager(config_path).load_config(overrides)
