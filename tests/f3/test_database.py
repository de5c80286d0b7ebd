"""Tests for the database handle."""

import sqlite3

import pytest

from planner.db.database import Database


class TestDatabase:
    """Tests for connection lifecycle and schema."""

    def test_file_database_created_lazily(self, tmp_path):
        db_path = tmp_path / "nested" / "planner.db"
        db = Database(db_path)

        assert not db_path.exists()
        db.connect()
        assert db_path.exists()
        db.close()

    def test_schema_is_idempotent(self, tmp_path):
        db_path = tmp_path / "planner.db"
        first = Database(db_path)
        first.connect()
        first.close()

        second = Database(db_path)
        with second.transaction() as conn:
            tables = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'coverage'"
            ).fetchall()
        second.close()

        assert len(tables) == 1

    def test_connection_is_reused(self, database):
        assert database.connect() is database.connect()

    def test_unique_phone_class_constraint(self, database):
        with database.transaction() as conn:
            conn.execute(
                "INSERT INTO coverage (phone, student_class, data, created_at, updated_at) "
                "VALUES ('9876543210', '11', '{}', 't', 't')"
            )

        with pytest.raises(sqlite3.IntegrityError):
            with database.transaction() as conn:
                conn.execute(
                    "INSERT INTO coverage (phone, student_class, data, created_at, updated_at) "
                    "VALUES ('9876543210', '11', '{}', 't', 't')"
                )

    def test_rollback_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.transaction() as conn:
                conn.execute(
                    "INSERT INTO coverage (phone, student_class, data, created_at, updated_at) "
                    "VALUES ('9876543210', '12', '{}', 't', 't')"
                )
                raise RuntimeError("boom")

        with database.transaction() as conn:
            count = conn.execute("SELECT COUNT(*) FROM coverage").fetchone()[0]
        assert count == 0

    def test_close_then_reopen(self, tmp_path):
        db = Database(tmp_path / "planner.db")
        db.connect()
        db.close()
        db.close()

        with db.transaction() as conn:
            assert conn.execute("SELECT COUNT(*) FROM coverage").fetchone()[0] == 0
        db.close()
