"""Configuration package for the coverage planner."""

from planner.config.app_config import (
    AppConfig,
    DatabaseConfig,
    SyllabusConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SyllabusConfig",
    "clear_config_cache",
    "load_app_config",
]
