"""Tests for admin grouping and search."""

from planner.core.admin import (
    filter_groups,
    filter_records_by_phone,
    group_by_phone,
    record_matches,
)
from planner.db.coverage_repository import CoverageRecord


def _record(record_id, phone, student_class, updated_at, data=None) -> CoverageRecord:
    return CoverageRecord(
        id=record_id,
        phone=phone,
        student_class=student_class,
        data=data or {},
        created_at="2026-01-01T00:00:00+00:00",
        updated_at=updated_at,
    )


def _chapter(comment="", topics=None) -> dict:
    return {"completed": False, "comment": comment, "topics": topics or {}}


ORGANIC_DATA = {
    "organic_chem": {
        "Some Basic Principles of Organic Chemistry": _chapter(
            topics={"Isomerism": {"completed": True, "comment": ""}}
        )
    }
}
COMMENT_DATA = {
    "physics": {"Kinematics": _chapter(comment="Needs ORGANIC-style revision plan")}
}
PLAIN_DATA = {"physics": {"Kinematics": _chapter(comment="vectors")}}


class TestGroupByPhone:
    """Tests for grouping."""

    def test_groups_and_orders(self):
        records = [
            _record(1, "9876543210", "12", "2026-03-01T10:00:00+00:00"),
            _record(2, "9123456789", "11", "2026-03-05T10:00:00+00:00"),
            _record(3, "9876543210", "11", "2026-03-02T10:00:00+00:00"),
        ]

        groups = group_by_phone(records)

        assert [g.phone for g in groups] == ["9123456789", "9876543210"]
        assert [r.student_class for r in groups[1].records] == ["11", "12"]
        assert groups[1].last_updated == "2026-03-02T10:00:00+00:00"
        assert groups[1].classes == ["11", "12"]
        assert groups[1].formatted_phone == "98765 43210"

    def test_same_class_sorted_newest_first(self):
        records = [
            _record(1, "9876543210", "11", "2026-03-01T10:00:00+00:00"),
            _record(2, "9876543210", "11", "2026-03-03T10:00:00+00:00"),
        ]

        group = group_by_phone(records)[0]
        assert [r.id for r in group.records] == [2, 1]

    def test_timestamps_with_different_offsets(self):
        records = [
            _record(1, "9876543210", "11", "2026-03-01T10:00:00+00:00"),
            _record(2, "9876543210", "12", "2026-03-01T12:00:00+05:30"),
        ]

        group = group_by_phone(records)[0]
        assert group.last_updated == "2026-03-01T10:00:00+00:00"

    def test_empty(self):
        assert group_by_phone([]) == []

    def test_to_dict(self):
        group = group_by_phone([_record(1, "9876543210", "11", "2026-03-01T10:00:00+00:00")])[0]
        data = group.to_dict()
        assert data["formatted_phone"] == "98765 43210"
        assert data["records"][0]["id"] == 1


class TestFilterGroups:
    """Tests for class and free-text filters."""

    def _groups(self):
        return group_by_phone(
            [
                _record(1, "9876543210", "11", "2026-03-01T10:00:00+00:00", ORGANIC_DATA),
                _record(2, "9123456789", "12", "2026-03-02T10:00:00+00:00", COMMENT_DATA),
                _record(3, "9000000001", "12", "2026-03-03T10:00:00+00:00", PLAIN_DATA),
                _record(4, "9000000001", "11", "2026-03-04T10:00:00+00:00", PLAIN_DATA),
            ]
        )

    def test_no_filter_passes_everything(self):
        groups = self._groups()
        assert filter_groups(groups) == groups
        assert filter_groups(groups, None, "   ") == groups

    def test_class_filter_matches_any_member(self):
        phones = [g.phone for g in filter_groups(self._groups(), student_class="12")]
        assert phones == ["9000000001", "9123456789"]

    def test_search_matches_titles_and_comments(self):
        phones = {g.phone for g in filter_groups(self._groups(), search_term="organic")}
        assert phones == {"9876543210", "9123456789"}

    def test_search_matches_formatted_phone(self):
        phones = [g.phone for g in filter_groups(self._groups(), search_term="98765 432")]
        assert phones == ["9876543210"]

    def test_search_matches_raw_phone_fragment(self):
        phones = [g.phone for g in filter_groups(self._groups(), search_term="123456")]
        assert phones == ["9123456789"]

    def test_search_matches_topic_title(self):
        phones = [g.phone for g in filter_groups(self._groups(), search_term="isomer")]
        assert phones == ["9876543210"]

    def test_class_and_search_combined(self):
        assert filter_groups(self._groups(), student_class="11", search_term="revision") == []

    def test_search_no_match(self):
        assert filter_groups(self._groups(), search_term="thermodynamics") == []


class TestRecordMatches:
    """Tests for record-level search."""

    def test_matches_id_and_class(self):
        record = _record(42, "9876543210", "12", "2026-03-01T10:00:00+00:00", PLAIN_DATA)

        assert record_matches(record, "42")
        assert record_matches(record, "12")
        assert record_matches(record, "vectors")
        assert not record_matches(record, "optics")

    def test_subject_keys_are_not_searched(self):
        record = _record(5, "9876543210", "11", "2026-03-01T10:00:00+00:00", {"organic_chem": {}})
        assert not record_matches(record, "organic")


class TestFilterRecordsByPhone:
    """Tests for the flat admin phone filter."""

    def _records(self):
        return [
            _record(1, "9876543210", "11", "2026-03-01T10:00:00+00:00"),
            _record(2, "9123456789", "12", "2026-03-02T10:00:00+00:00"),
        ]

    def test_formatted_query_is_reduced_to_digits(self):
        result = filter_records_by_phone(self._records(), "(987) 654")
        assert [r.id for r in result] == [1]

    def test_empty_query_passes_through(self):
        assert len(filter_records_by_phone(self._records(), "")) == 2
        assert len(filter_records_by_phone(self._records(), None)) == 2

    def test_query_without_digits(self):
        assert filter_records_by_phone(self._records(), "abc") == []
