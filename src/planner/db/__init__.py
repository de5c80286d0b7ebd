"""Database module for SQLite persistence.

Provides:
- Database: owned connection handle with schema initialization
- CoverageRepository: upsert, lookup and delete of coverage records
"""

from planner.db.coverage_repository import CoverageRecord, CoverageRepository
from planner.db.database import DEFAULT_DB_PATH, Database

__all__ = ["CoverageRecord", "CoverageRepository", "DEFAULT_DB_PATH", "Database"]
