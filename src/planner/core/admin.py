"""Administrative views over coverage records.

Read-only, in-memory query composition: grouping records by phone,
filtering groups by class and free-text search, and filtering the flat
record list by a phone fragment. Nothing here touches storage.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from planner.core.phone import format_phone, normalize_phone
from planner.db.coverage_repository import CoverageRecord


@dataclass
class PhoneGroup:
    """All coverage records of one phone number."""

    phone: str
    records: list[CoverageRecord] = field(default_factory=list)
    last_updated: str = ""

    @property
    def formatted_phone(self) -> str:
        return format_phone(self.phone) or self.phone

    @property
    def classes(self) -> list[str]:
        return sorted({r.student_class for r in self.records})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "phone": self.phone,
            "formatted_phone": self.formatted_phone,
            "last_updated": self.last_updated,
            "records": [r.to_dict() for r in self.records],
        }


def _timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def group_by_phone(records: Iterable[CoverageRecord]) -> list[PhoneGroup]:
    """Group records by phone.

    Inside a group records are sorted by class ascending, then most recently
    updated first. Groups are sorted by their latest update, newest first.
    """
    groups: dict[str, PhoneGroup] = {}

    for record in records:
        group = groups.get(record.phone)
        if group is None:
            groups[record.phone] = PhoneGroup(
                phone=record.phone,
                records=[record],
                last_updated=record.updated_at,
            )
            continue

        group.records.append(record)
        if _timestamp(record.updated_at) > _timestamp(group.last_updated):
            group.last_updated = record.updated_at

    grouped = list(groups.values())
    for group in grouped:
        # Two stable passes: newest first, then class ascending
        group.records.sort(key=lambda r: _timestamp(r.updated_at), reverse=True)
        group.records.sort(key=lambda r: r.student_class)

    grouped.sort(key=lambda g: _timestamp(g.last_updated), reverse=True)
    return grouped


def _iter_text(data: dict[str, Any]) -> Iterator[str]:
    """Chapter titles, topic titles and comments of a progress tree."""
    for chapters in data.values():
        if not isinstance(chapters, dict):
            continue
        for chapter_title, chapter_state in chapters.items():
            yield chapter_title
            if not isinstance(chapter_state, dict):
                continue
            yield str(chapter_state.get("comment") or "")
            topics = chapter_state.get("topics") or {}
            if not isinstance(topics, dict):
                continue
            for topic_title, topic_state in topics.items():
                yield topic_title
                if isinstance(topic_state, dict):
                    yield str(topic_state.get("comment") or "")


def record_matches(record: CoverageRecord, term: str) -> bool:
    """Case-insensitive match of term against a record's id, class or text.

    Args:
        record: Record to inspect
        term: Search term, already lowercased and trimmed
    """
    if term in str(record.id) or term in record.student_class.lower():
        return True
    return any(term in text.lower() for text in _iter_text(record.data))


def filter_groups(
    groups: Iterable[PhoneGroup],
    student_class: str | None = None,
    search_term: str | None = None,
) -> list[PhoneGroup]:
    """Filter groups by class and free-text search.

    A group passes the class filter if any of its records has that class.
    It passes the search if the phone (raw or formatted) contains the term,
    or if any record matches it by id, class, chapter/topic title or
    comment. No filter means pass-through.
    """
    term = (search_term or "").strip().lower()
    result = []

    for group in groups:
        if student_class and not any(r.student_class == student_class for r in group.records):
            continue

        if term:
            phone_match = (
                term in group.phone.lower()
                or term in format_phone(group.phone).lower()
            )
            if not phone_match and not any(record_matches(r, term) for r in group.records):
                continue

        result.append(group)

    return result


def filter_records_by_phone(
    records: Iterable[CoverageRecord],
    query: str | None,
) -> list[CoverageRecord]:
    """Flat admin list filter on a phone fragment.

    The query is reduced to digits and matched as a substring of the stored
    phone. A query without any digit falls back to a case-insensitive
    substring match on the stored phone.
    """
    query = (query or "").strip()
    records = list(records)
    if not query:
        return records

    digits = normalize_phone(query)
    if not digits:
        lowered = query.lower()
        return [r for r in records if lowered in r.phone.lower()]

    return [r for r in records if digits in r.phone or query in r.phone]
