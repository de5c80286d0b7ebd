"""Tests for planner CLI commands."""

import pytest
from typer.testing import CliRunner

from planner.cli.commands import app
from planner.config.app_config import clear_config_cache
from planner.db.coverage_repository import CoverageRepository
from planner.db.database import Database

runner = CliRunner()

PHONE = "9876543210"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Run every command without a config file so defaults apply."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PLANNER_DB_PATH", raising=False)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "planner.db"


def load(db_path, phone=PHONE, student_class="11"):
    """Read a record back through a fresh connection."""
    database = Database(db_path)
    try:
        return CoverageRepository(database).find_by_phone_and_class(phone, student_class)
    finally:
        database.close()


class TestInitDb:
    def test_creates_file(self, db_path):
        result = runner.invoke(app, ["init-db", "--db", str(db_path)])

        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert db_path.exists()


class TestShow:
    """Tests for planner show."""

    def test_first_show_creates_record(self, db_path):
        result = runner.invoke(app, ["show", PHONE, "--db", str(db_path)])

        assert result.exit_code == 0
        assert "New coverage created" in result.stdout
        assert "98765 43210" in result.stdout
        assert "Kinematics" in result.stdout
        assert load(db_path) is not None

    def test_second_show_is_not_new(self, db_path):
        runner.invoke(app, ["show", PHONE, "--db", str(db_path)])
        result = runner.invoke(app, ["show", PHONE, "--db", str(db_path)])

        assert result.exit_code == 0
        assert "New coverage created" not in result.stdout

    def test_subject_filter(self, db_path):
        result = runner.invoke(
            app, ["show", PHONE, "--subject", "organic_chem", "--db", str(db_path)]
        )

        assert result.exit_code == 0
        assert "Isomerism" in result.stdout
        assert "Kinematics" not in result.stdout

    def test_invalid_phone(self, db_path):
        result = runner.invoke(app, ["show", "123", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "10-15 digits" in result.stdout

    def test_invalid_class(self, db_path):
        result = runner.invoke(app, ["show", PHONE, "--class", "10", "--db", str(db_path)])
        assert result.exit_code == 1


class TestToggle:
    """Tests for toggle-topic and toggle-chapter."""

    def test_toggle_topic(self, db_path):
        result = runner.invoke(
            app,
            ["toggle-topic", PHONE, "physics", "Kinematics", "Projectile Motion",
             "--db", str(db_path)],
        )

        assert result.exit_code == 0
        record = load(db_path)
        kinematics = record.data["physics"]["Kinematics"]
        assert kinematics["topics"]["Projectile Motion"]["completed"] is True
        assert kinematics["completed"] is False

    def test_toggle_chapter_then_undo_topic(self, db_path):
        runner.invoke(
            app, ["toggle-chapter", PHONE, "physics", "Kinematics", "--db", str(db_path)]
        )
        assert load(db_path).data["physics"]["Kinematics"]["completed"] is True

        result = runner.invoke(
            app,
            ["toggle-topic", PHONE, "physics", "Kinematics", "Motion in a Plane",
             "--undo", "--db", str(db_path)],
        )

        assert result.exit_code == 0
        kinematics = load(db_path).data["physics"]["Kinematics"]
        assert kinematics["completed"] is False
        assert kinematics["topics"]["Projectile Motion"]["completed"] is True

    def test_toggle_class_12(self, db_path):
        result = runner.invoke(
            app,
            ["toggle-chapter", PHONE, "maths", "Integrals", "--class", "12",
             "--db", str(db_path)],
        )

        assert result.exit_code == 0
        assert load(db_path, student_class="12").data["maths"]["Integrals"]["completed"] is True
        assert load(db_path, student_class="11") is None

    def test_unknown_subject_is_rejected(self, db_path):
        result = runner.invoke(
            app,
            ["toggle-topic", PHONE, "chemstry", "Kinematics", "Projectile Motion",
             "--db", str(db_path)],
        )

        assert result.exit_code == 1
        assert "chemstry" in result.stdout
        assert load(db_path) is None


class TestComment:
    def test_chapter_comment(self, db_path):
        result = runner.invoke(
            app, ["comment", PHONE, "physics", "Kinematics", "revise graphs", "--db", str(db_path)]
        )

        assert result.exit_code == 0
        assert load(db_path).data["physics"]["Kinematics"]["comment"] == "revise graphs"

    def test_topic_comment(self, db_path):
        result = runner.invoke(
            app,
            ["comment", PHONE, "physics", "Kinematics", "range formula",
             "--topic", "Projectile Motion", "--db", str(db_path)],
        )

        assert result.exit_code == 0
        topic = load(db_path).data["physics"]["Kinematics"]["topics"]["Projectile Motion"]
        assert topic["comment"] == "range formula"


class TestAdminList:
    def test_empty(self, db_path):
        result = runner.invoke(app, ["admin-list", "--db", str(db_path)])

        assert result.exit_code == 0
        assert "No coverage records" in result.stdout

    def test_lists_groups(self, db_path):
        runner.invoke(app, ["show", PHONE, "--db", str(db_path)])
        runner.invoke(app, ["show", "9123456789", "--class", "12", "--db", str(db_path)])

        result = runner.invoke(app, ["admin-list", "--db", str(db_path)])

        assert result.exit_code == 0
        assert "Coverage (2 students)" in result.stdout

    def test_search(self, db_path):
        runner.invoke(
            app, ["comment", PHONE, "physics", "Kinematics", "weak on vectors", "--db", str(db_path)]
        )
        runner.invoke(app, ["show", "9123456789", "--db", str(db_path)])

        result = runner.invoke(app, ["admin-list", "--search", "vectors", "--db", str(db_path)])

        assert result.exit_code == 0
        assert "Coverage (1 students)" in result.stdout

    def test_invalid_class(self, db_path):
        result = runner.invoke(app, ["admin-list", "--class", "10", "--db", str(db_path)])
        assert result.exit_code == 1


class TestDelete:
    def test_delete_with_yes(self, db_path):
        runner.invoke(app, ["show", PHONE, "--db", str(db_path)])
        record_id = load(db_path).id

        result = runner.invoke(app, ["delete", str(record_id), "--yes", "--db", str(db_path)])

        assert result.exit_code == 0
        assert "Deleted coverage" in result.stdout
        assert load(db_path) is None

    def test_delete_cancelled(self, db_path):
        runner.invoke(app, ["show", PHONE, "--db", str(db_path)])
        record_id = load(db_path).id

        result = runner.invoke(app, ["delete", str(record_id), "--db", str(db_path)], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert load(db_path) is not None

    def test_delete_missing(self, db_path):
        runner.invoke(app, ["init-db", "--db", str(db_path)])
        result = runner.invoke(app, ["delete", "999", "--yes", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "999" in result.stdout
