"""Repository for the coverage table.

Records are keyed by (phone, student_class). `save` is an upsert: the
first save for a pair inserts a row and assigns its id; later saves
overwrite the data and refresh updated_at while keeping id and
created_at.

Concurrent saves to the same pair are last-writer-wins.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from planner.core.errors import CorruptDataError, InvalidCoverageDataError, SerializationError
from planner.core.reconciler import validate_tree
from planner.db.database import Database

logger = structlog.get_logger(__name__)

BASE_SELECT = """
    SELECT id, phone, student_class, data, created_at, updated_at
    FROM coverage
"""

NEWEST_FIRST = "ORDER BY updated_at DESC, id DESC"


@dataclass
class CoverageRecord:
    """Coverage record from database."""

    id: int
    phone: str
    student_class: str
    data: dict[str, Any]
    created_at: str
    updated_at: str

    def meta(self) -> dict[str, Any]:
        """Everything except the progress tree."""
        return {
            "id": self.id,
            "phone": self.phone,
            "student_class": self.student_class,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {**self.meta(), "data": self.data}


def utc_now() -> str:
    """Current UTC time as ISO-8601 with microseconds."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def encode_data(phone: str, student_class: str, data: dict[str, Any]) -> str:
    """Serialize a progress tree for storage.

    Raises:
        SerializationError: If the tree is not JSON-encodable
    """
    try:
        return json.dumps(data, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(phone, student_class, str(e)) from e


def decode_data(record_id: int, payload: str) -> dict[str, Any]:
    """Parse a stored progress tree.

    Raises:
        CorruptDataError: If the payload is not a JSON object shaped like a
            progress tree
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise CorruptDataError(record_id, str(e)) from e

    if not isinstance(data, dict):
        raise CorruptDataError(record_id, f"expected a JSON object, got {type(data).__name__}")

    try:
        validate_tree(data)
    except InvalidCoverageDataError as e:
        raise CorruptDataError(record_id, str(e)) from e

    return data


def _row_to_record(row: sqlite3.Row) -> CoverageRecord:
    return CoverageRecord(
        id=row["id"],
        phone=row["phone"],
        student_class=row["student_class"],
        data=decode_data(row["id"], row["data"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class CoverageRepository:
    """CRUD operations for coverage records."""

    def __init__(self, database: Database):
        self.database = database

    def save(self, phone: str, student_class: str, data: dict[str, Any]) -> CoverageRecord:
        """Insert or update the record for (phone, student_class).

        Args:
            phone: Normalized phone digits
            student_class: "11" or "12"
            data: Progress tree to store

        Returns:
            The stored record with its (possibly new) id

        Raises:
            SerializationError: If data cannot be encoded
        """
        payload = encode_data(phone, student_class, data)
        now = utc_now()

        with self.database.transaction() as conn:
            # updated_at never moves backwards, even if the clock does
            conn.execute(
                """
                INSERT INTO coverage (phone, student_class, data, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(phone, student_class) DO UPDATE SET
                    data = excluded.data,
                    updated_at = MAX(coverage.updated_at, excluded.updated_at)
                """,
                (phone, student_class, payload, now, now),
            )
            row = conn.execute(
                f"{BASE_SELECT} WHERE phone = ? AND student_class = ?",
                (phone, student_class),
            ).fetchone()

        record = _row_to_record(row)
        logger.debug(
            "coverage.upserted",
            record_id=record.id,
            phone=phone,
            student_class=student_class,
        )
        return record

    def find_by_phone_and_class(self, phone: str, student_class: str) -> CoverageRecord | None:
        """Get the record for a phone/class pair, or None."""
        with self.database.transaction() as conn:
            row = conn.execute(
                f"{BASE_SELECT} WHERE phone = ? AND student_class = ?",
                (phone, student_class),
            ).fetchone()

        return _row_to_record(row) if row is not None else None

    def find_by_phone(self, phone: str) -> list[CoverageRecord]:
        """Get every record of a phone across classes, newest first."""
        with self.database.transaction() as conn:
            rows = conn.execute(
                f"{BASE_SELECT} WHERE phone = ? {NEWEST_FIRST}", (phone,)
            ).fetchall()

        return [_row_to_record(row) for row in rows]

    def find_by_id(self, record_id: int) -> CoverageRecord | None:
        """Get a record by primary key, or None."""
        with self.database.transaction() as conn:
            row = conn.execute(f"{BASE_SELECT} WHERE id = ?", (record_id,)).fetchone()

        return _row_to_record(row) if row is not None else None

    def list_by_class(self, student_class: str) -> list[CoverageRecord]:
        """List records of one class, newest first."""
        with self.database.transaction() as conn:
            rows = conn.execute(
                f"{BASE_SELECT} WHERE student_class = ? {NEWEST_FIRST}", (student_class,)
            ).fetchall()

        return [_row_to_record(row) for row in rows]

    def list_all(self) -> list[CoverageRecord]:
        """List every record, newest first."""
        with self.database.transaction() as conn:
            rows = conn.execute(f"{BASE_SELECT} {NEWEST_FIRST}").fetchall()

        return [_row_to_record(row) for row in rows]

    def delete_by_id(self, record_id: int) -> bool:
        """Delete a record by id.

        Returns:
            True if a row was removed; a missing id is not an error
        """
        with self.database.transaction() as conn:
            cursor = conn.execute("DELETE FROM coverage WHERE id = ?", (record_id,))

        logger.debug("coverage.row_deleted", record_id=record_id, removed=cursor.rowcount)
        return cursor.rowcount > 0

    def delete_by_phone_and_class(self, phone: str, student_class: str) -> bool:
        """Delete the record of a phone/class pair, if any."""
        with self.database.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM coverage WHERE phone = ? AND student_class = ?",
                (phone, student_class),
            )

        logger.debug(
            "coverage.row_deleted",
            phone=phone,
            student_class=student_class,
            removed=cursor.rowcount,
        )
        return cursor.rowcount > 0
