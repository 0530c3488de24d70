"""Configuration management for request_history."""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 150


def parse_bool_env(env_var: str, default: bool) -> bool:
    """Parse boolean environment variable with validation."""
    value = os.getenv(env_var)
    if value is None:
        return default

    value_lower = value.lower().strip()
    if value_lower in ('true', '1', 'yes', 'on'):
        return True
    elif value_lower in ('false', '0', 'no', 'off', ''):
        return False
    else:
        logger.warning(
            f"Invalid boolean value '{value}' for {env_var}. "
            f"Valid: true/false, 1/0, yes/no, on/off. Using default: {default}"
        )
        return default


def parse_int_env(env_var: str, default: int) -> int:
    """Parse integer environment variable with validation."""
    value = os.getenv(env_var)
    if value is None:
        return default

    try:
        return int(value)
    except ValueError:
        logger.warning(
            f"Invalid integer value '{value}' for {env_var}. "
            f"Using default: {default}"
        )
        return default


def validate_positive_int(name: str, value) -> None:
    """Raise ConfigurationError unless value is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(
            f"Invalid {name} {value!r}. Must be a positive integer"
        )


@dataclass
class HistoryListConfig:
    """Configuration for the paginated history list."""
    page_size: int = DEFAULT_PAGE_SIZE     # Records per page query
    auto_load_on_attach: bool = True       # Load first page on attach()
    search_limit: int = DEFAULT_PAGE_SIZE  # Max results per search query

    def validate(self) -> None:
        """Validate history list settings."""
        validate_positive_int("page size", self.page_size)
        validate_positive_int("search limit", self.search_limit)


@dataclass
class StoreConfig:
    """Configuration for the SQLite record store."""
    db_path: Optional[Path] = None

    def __post_init__(self):
        """Set default path if not provided."""
        if self.db_path is None:
            self.db_path = Path.home() / ".local/share/request_history/history.db"
        else:
            self.db_path = Path(self.db_path)


@dataclass
class RequestHistoryConfig:
    """Main configuration for request_history."""
    history_list: HistoryListConfig = field(default_factory=HistoryListConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    @classmethod
    def load(cls) -> 'RequestHistoryConfig':
        """Load configuration from file and environment variables."""
        # Start with defaults as dict
        config_dict = {
            "history_list": {
                "page_size": DEFAULT_PAGE_SIZE,
                "auto_load_on_attach": True,
                "search_limit": DEFAULT_PAGE_SIZE,
            },
            "store": {
                "db_path": None,
            },
        }

        config_path = Path.home() / ".config" / "request_history" / "config.json"
        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    file_config = json.load(f)
                logger.info(f"Loading configuration from {config_path}")

                # Deep merge file_config into config_dict
                for section, values in file_config.items():
                    if section in config_dict and isinstance(values, dict):
                        config_dict[section].update(values)

            except json.JSONDecodeError as e:
                error_msg = (
                    f"Configuration file is corrupted or contains invalid JSON:\n"
                    f"  File: {config_path}\n"
                    f"  Error: {e}\n"
                    f"  Using default configuration instead."
                )
                logger.error(error_msg)
                print(f"WARNING: {error_msg}", file=sys.stderr)

            except OSError as e:
                logger.warning(f"Failed to load config from file: {e}")

        # Override with environment variables
        section = config_dict["history_list"]
        section["page_size"] = parse_int_env('REQUEST_HISTORY_PAGE_SIZE', section["page_size"])
        section["auto_load_on_attach"] = parse_bool_env('REQUEST_HISTORY_AUTO_LOAD', section["auto_load_on_attach"])
        section["search_limit"] = parse_int_env('REQUEST_HISTORY_SEARCH_LIMIT', section["search_limit"])

        db_path = os.getenv('REQUEST_HISTORY_DB_PATH')
        if db_path:
            config_dict["store"]["db_path"] = Path(db_path)

        config = cls(
            history_list=HistoryListConfig(**config_dict["history_list"]),
            store=StoreConfig(**config_dict["store"]),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration values."""
        self.history_list.validate()
