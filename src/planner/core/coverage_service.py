"""Coverage service.

Orchestration boundary between callers (web routes, CLI) and the
reconciler and repository:

- validates the phone identity and class before touching storage
- creates a blank record on first access
- routes every edit through mutate_record so stored trees always match
  the current syllabus shape
- keeps whole-document replacement (replace_data) separate from
  structured edits, and reconciles replaced trees before saving
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from planner.core import reconciler as tree_ops
from planner.core.errors import InvalidIdentityError, NotFoundError, UnknownClassError
from planner.core.phone import is_valid_phone, normalize_phone
from planner.core.reconciler import CoverageData, CoverageReconciler
from planner.core.syllabus import SubjectSyllabus, SyllabusIndex, parse_student_class
from planner.db.coverage_repository import CoverageRecord, CoverageRepository

logger = structlog.get_logger(__name__)

MutateFn = Callable[[CoverageData], "CoverageData | None"]


@dataclass
class EnsureResult:
    """Result of ensure_record."""

    record: CoverageRecord
    is_new: bool


class CoverageService:
    """Read, edit and delete coverage records."""

    def __init__(self, repository: CoverageRepository, syllabus: SyllabusIndex):
        self.repository = repository
        self.syllabus = syllabus
        self.reconciler = CoverageReconciler(syllabus)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    @staticmethod
    def normalize_identity(phone: str | None) -> str:
        """Normalize a phone, or raise InvalidIdentityError."""
        normalized = normalize_phone(phone)
        if not normalized or not is_valid_phone(normalized):
            raise InvalidIdentityError(phone)
        return normalized

    def resolve_class(self, student_class: object) -> str:
        """Return a class that has a definition, or raise UnknownClassError."""
        parsed = parse_student_class(student_class)
        if parsed is None:
            raise UnknownClassError(student_class)
        self.syllabus.get_grade(parsed)
        return parsed

    def require_subject(self, student_class: object, subject: str) -> SubjectSyllabus:
        """Definition of subject in a class.

        Raises:
            UnknownClassError: If the class or subject has no definition
        """
        return self.syllabus.get_subject(self.resolve_class(student_class), subject)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def ensure_record(self, phone: str, student_class: object) -> EnsureResult:
        """Get the record for phone/class, creating a blank one if missing."""
        normalized = self.normalize_identity(phone)
        grade = self.resolve_class(student_class)

        existing = self.repository.find_by_phone_and_class(normalized, grade)
        if existing is not None:
            return EnsureResult(record=existing, is_new=False)

        record = self.repository.save(normalized, grade, self.reconciler.blank(grade))
        logger.info("coverage.created", record_id=record.id, phone=normalized, student_class=grade)
        return EnsureResult(record=record, is_new=True)

    def reconciled(self, record: CoverageRecord) -> CoverageRecord:
        """Copy of record whose tree includes every current syllabus entry.

        Nothing is written; the stored row only changes on the next save.
        """
        return replace(
            record,
            data=self.reconciler.reconcile(record.student_class, record.data),
        )

    def get_by_id(self, record_id: int) -> CoverageRecord | None:
        return self.repository.find_by_id(record_id)

    def require_by_id(self, record_id: int) -> CoverageRecord:
        """Get a record by id.

        Raises:
            NotFoundError: If no record has this id
        """
        record = self.repository.find_by_id(record_id)
        if record is None:
            raise NotFoundError(record_id)
        return record

    def list_records(self, student_class: object = None) -> list[CoverageRecord]:
        """List records, newest first, optionally limited to one class."""
        if student_class is None or student_class == "":
            return self.repository.list_all()
        return self.repository.list_by_class(self.resolve_class(student_class))

    def history(self, phone: str) -> list[CoverageRecord]:
        """Every record of a phone across classes, newest first."""
        return self.repository.find_by_phone(self.normalize_identity(phone))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def mutate_record(
        self,
        phone: str,
        student_class: object,
        mutate: MutateFn,
    ) -> CoverageRecord:
        """Apply an edit to the record of phone/class and save it.

        The mutation receives a reconciled deep copy of the stored tree (or
        a blank tree if none exists). It may edit the draft in place and
        return None, or return a new tree.
        """
        normalized = self.normalize_identity(phone)
        grade = self.resolve_class(student_class)

        base = self.repository.find_by_phone_and_class(normalized, grade)
        draft = (
            self.reconciler.reconcile(grade, base.data)
            if base is not None
            else self.reconciler.blank(grade)
        )

        result = mutate(draft)
        if result is None:
            result = draft

        tree_ops.validate_tree(result)
        record = self.repository.save(normalized, grade, self.reconciler.reconcile(grade, result))

        logger.info(
            "coverage.saved",
            record_id=record.id,
            phone=normalized,
            student_class=grade,
            created=base is None,
        )
        return record

    def replace_data(self, phone: str, student_class: object, data: Any) -> CoverageRecord:
        """Replace the whole tree for phone/class with client-supplied data.

        The tree is shape-checked and reconciled before it is stored.

        Raises:
            InvalidCoverageDataError: If data has the wrong structure
        """
        tree_ops.validate_tree(data)
        return self.mutate_record(phone, student_class, lambda _draft: tree_ops.clone_coverage(data))

    def replace_by_id(self, record_id: int, data: Any) -> CoverageRecord:
        """Replace the tree of an existing record.

        Raises:
            NotFoundError: If no record has this id
            InvalidCoverageDataError: If data has the wrong structure
        """
        record = self.require_by_id(record_id)
        return self.replace_data(record.phone, record.student_class, data)

    def toggle_chapter(
        self,
        phone: str,
        student_class: object,
        subject: str,
        chapter_title: str,
        completed: bool,
    ) -> CoverageRecord:
        chapter = self.require_subject(student_class, subject).get_chapter(chapter_title)
        return self.mutate_record(
            phone,
            student_class,
            lambda draft: tree_ops.toggle_chapter(
                draft, subject, chapter_title, completed, definition=chapter
            ),
        )

    def toggle_topic(
        self,
        phone: str,
        student_class: object,
        subject: str,
        chapter_title: str,
        topic_title: str,
        completed: bool,
    ) -> CoverageRecord:
        self.require_subject(student_class, subject)
        return self.mutate_record(
            phone,
            student_class,
            lambda draft: tree_ops.toggle_topic(
                draft, subject, chapter_title, topic_title, completed
            ),
        )

    def set_chapter_comment(
        self,
        phone: str,
        student_class: object,
        subject: str,
        chapter_title: str,
        comment: str,
    ) -> CoverageRecord:
        self.require_subject(student_class, subject)
        return self.mutate_record(
            phone,
            student_class,
            lambda draft: tree_ops.set_chapter_comment(draft, subject, chapter_title, comment),
        )

    def set_topic_comment(
        self,
        phone: str,
        student_class: object,
        subject: str,
        chapter_title: str,
        topic_title: str,
        comment: str,
    ) -> CoverageRecord:
        self.require_subject(student_class, subject)
        return self.mutate_record(
            phone,
            student_class,
            lambda draft: tree_ops.set_topic_comment(
                draft, subject, chapter_title, topic_title, comment
            ),
        )

    # -------------------------------------------------------------------------
    # Deletes
    # -------------------------------------------------------------------------

    def remove_by_id(self, record_id: int) -> bool:
        """Delete a record by id; a missing id is a no-op."""
        removed = self.repository.delete_by_id(record_id)
        logger.info("coverage.deleted", record_id=record_id, removed=removed)
        return removed

    def remove_by_phone_and_class(self, phone: str, student_class: object) -> bool:
        """Delete the record of a phone/class pair; a missing pair is a no-op."""
        normalized = self.normalize_identity(phone)
        grade = self.resolve_class(student_class)
        removed = self.repository.delete_by_phone_and_class(normalized, grade)
        logger.info("coverage.deleted", phone=normalized, student_class=grade, removed=removed)
        return removed
