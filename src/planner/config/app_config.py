"""Application configuration loader.

Loads configuration from data/config/planner_config_v1.yaml, falling back
to built-in defaults when the file is absent.

Usage:
    from planner.config.app_config import load_app_config

    config = load_app_config()
    db = Database(config.database.path)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/planner_config_v1.yaml")

# Overrides database.path when set
DB_PATH_ENV = "PLANNER_DB_PATH"


@dataclass
class DatabaseConfig:
    """Where the coverage store lives."""

    path: str = "data/planner.db"


@dataclass
class SyllabusConfig:
    """Where syllabus definitions are read from.

    An empty directory means the copy bundled with the package.
    """

    directory: str = ""

    def get_directory(self) -> Path | None:
        return Path(self.directory) if self.directory else None


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    syllabus: SyllabusConfig = field(default_factory=SyllabusConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "data/planner.db"},
        "syllabus": {"directory": ""},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    db_data = data.get("database") or {}
    database = DatabaseConfig(
        path=str(db_data.get("path") or defaults["database"]["path"]),
    )

    syllabus_data = data.get("syllabus") or {}
    syllabus = SyllabusConfig(
        directory=str(syllabus_data.get("directory") or ""),
    )

    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        database.path = env_path

    return AppConfig(database=database, syllabus=syllabus)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
