"""Error taxonomy for the coverage core.

Every failure raised by the normalizer, reconciler, repository or service
derives from CoverageError so the web and CLI layers can map them in one
place.
"""

from __future__ import annotations


class CoverageError(Exception):
    """Base class for coverage domain errors."""

    pass


class InvalidIdentityError(CoverageError):
    """Raised when a phone number does not normalize to 10-15 digits."""

    def __init__(self, raw: str | None):
        self.raw = raw
        super().__init__("Please provide a valid phone number (10-15 digits).")


class UnknownClassError(CoverageError):
    """Raised when a class (or subject) has no syllabus definition."""

    def __init__(self, student_class: object, subject: str | None = None):
        self.student_class = student_class
        self.subject = subject
        if subject is None:
            message = f"Unknown syllabus for class {student_class}"
        else:
            message = f"Unknown syllabus for class {student_class}, subject {subject}"
        super().__init__(message)


class SerializationError(CoverageError):
    """Raised when a progress tree cannot be encoded for storage."""

    def __init__(self, phone: str, student_class: str, reason: str):
        self.phone = phone
        self.student_class = student_class
        super().__init__(
            f"Unable to serialize coverage data for {phone} (class {student_class}): {reason}"
        )


class CorruptDataError(CoverageError):
    """Raised when stored coverage text cannot be decoded."""

    def __init__(self, record_id: int, reason: str):
        self.record_id = record_id
        super().__init__(
            f"Corrupted coverage data in database for record {record_id}: {reason}"
        )


class NotFoundError(CoverageError):
    """Raised when a coverage record id does not exist."""

    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Coverage entry with id {record_id} was not found.")


class InvalidCoverageDataError(CoverageError):
    """Raised when a client-supplied progress tree has the wrong shape."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Invalid coverage data at '{path}': {reason}")
