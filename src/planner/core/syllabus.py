"""Syllabus definition index.

Read-only tree of class -> subject -> chapter -> topic. Every chapter and
topic carries a stable id derived from its title and position:

- chapter: "{grade}-{subject}-{slug(title)}"
- topic:   "{chapter_id}-{slug(title)}"

Duplicate titles under the same parent get "-2", "-3", ... appended.

Raw syllabus files use the shape {chapter_title: [topic_title, ...]} and
live at <directory>/<grade>/<subject>.json.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog

from planner.core.errors import UnknownClassError

logger = structlog.get_logger(__name__)

StudentClass = Literal["11", "12"]

ALLOWED_CLASSES: tuple[str, ...] = ("11", "12")

# Ordered subject catalogue: (key, label)
SUBJECTS: tuple[tuple[str, str], ...] = (
    ("physics", "Physics"),
    ("maths", "Maths"),
    ("physical_chem", "Physical Chemistry"),
    ("organic_chem", "Organic Chemistry"),
    ("inorganic_chem", "Inorganic Chemistry"),
)

SUBJECT_KEYS: tuple[str, ...] = tuple(key for key, _ in SUBJECTS)

BUNDLED_SYLLABUS_DIR = Path(__file__).resolve().parent.parent / "syllabus_data"

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class TopicDefinition:
    """A single syllabus topic."""

    id: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title}


@dataclass(frozen=True)
class ChapterDefinition:
    """A chapter and its ordered topics."""

    id: str
    title: str
    topics: tuple[TopicDefinition, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "topics": [t.to_dict() for t in self.topics],
        }


@dataclass(frozen=True)
class SubjectSyllabus:
    """All chapters of one subject for one class."""

    grade: str
    subject: str
    title: str
    chapters: tuple[ChapterDefinition, ...] = ()

    def get_chapter(self, title: str) -> ChapterDefinition | None:
        """Find a chapter by its title."""
        for chapter in self.chapters:
            if chapter.title == title:
                return chapter
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "grade": self.grade,
            "subject": self.subject,
            "title": self.title,
            "chapters": [c.to_dict() for c in self.chapters],
        }


@dataclass(frozen=True)
class GradeSyllabus:
    """Every subject defined for one class."""

    grade: str
    subjects: tuple[SubjectSyllabus, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "grade": self.grade,
            "subjects": [s.to_dict() for s in self.subjects],
        }


@dataclass
class SyllabusIndex:
    """Lookup over the definitions of every supported class."""

    grades_by_key: dict[str, GradeSyllabus] = field(default_factory=dict)

    def grades(self) -> list[str]:
        """Classes that have a definition, in ascending order."""
        return sorted(self.grades_by_key)

    def get_grade(self, grade: str) -> GradeSyllabus:
        """Get the definition for a class.

        Raises:
            UnknownClassError: If the class has no definition
        """
        data = self.grades_by_key.get(grade)
        if data is None:
            raise UnknownClassError(grade)
        return data

    def get_subject(self, grade: str, subject: str) -> SubjectSyllabus:
        """Get one subject of a class.

        Raises:
            UnknownClassError: If the class or subject has no definition
        """
        for candidate in self.get_grade(grade).subjects:
            if candidate.subject == subject:
                return candidate
        raise UnknownClassError(grade, subject)

    @staticmethod
    def subject_label(subject: str) -> str:
        """Human readable label for a subject key."""
        for key, label in SUBJECTS:
            if key == subject:
                return label
        return subject


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def parse_student_class(value: object) -> str | None:
    """Coerce a class value to "11" or "12".

    Returns:
        The class string, or None if value is not a supported class
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if value in ALLOWED_CLASSES else None


def slugify(value: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', trim dashes."""
    return _SLUG_INVALID.sub("-", value.lower().strip()).strip("-")


def build_stable_id(prefix: str, label: str, counter: dict[str, int]) -> str:
    """Build a collision-safe id for a title under one parent.

    Args:
        prefix: Id of the parent (or "{grade}-{subject}" for chapters)
        label: Title to slugify
        counter: Per-parent map of ids already issued

    Returns:
        "{prefix}-{slug}" for the first occurrence, "{prefix}-{slug}-N" after
    """
    key = f"{prefix}-{slugify(label) or 'item'}"
    seen = counter.get(key, 0)
    counter[key] = seen + 1
    return key if seen == 0 else f"{key}-{seen + 1}"


def build_subject_syllabus(
    grade: str,
    subject: str,
    raw: dict[str, list[str]],
) -> SubjectSyllabus:
    """Convert one raw subject mapping into definitions with stable ids."""
    chapter_counter: dict[str, int] = {}
    chapters = []

    for chapter_title, topic_titles in raw.items():
        chapter_id = build_stable_id(f"{grade}-{subject}", chapter_title, chapter_counter)
        topic_counter: dict[str, int] = {}
        topics = tuple(
            TopicDefinition(id=build_stable_id(chapter_id, title, topic_counter), title=title)
            for title in topic_titles
        )
        chapters.append(ChapterDefinition(id=chapter_id, title=chapter_title, topics=topics))

    return SubjectSyllabus(
        grade=grade,
        subject=subject,
        title=SyllabusIndex.subject_label(subject),
        chapters=tuple(chapters),
    )


def build_grade_syllabus(
    grade: str,
    raw: dict[str, dict[str, list[str]]],
) -> GradeSyllabus:
    """Convert {subject: {chapter: [topics]}} into a GradeSyllabus.

    Subjects follow the SUBJECTS order; keys outside the catalogue are kept
    after them in their original order.
    """
    ordered = [key for key in SUBJECT_KEYS if key in raw]
    ordered += [key for key in raw if key not in SUBJECT_KEYS]

    return GradeSyllabus(
        grade=grade,
        subjects=tuple(build_subject_syllabus(grade, key, raw[key]) for key in ordered),
    )


# =============================================================================
# LOAD FUNCTIONS
# =============================================================================


def load_syllabus(directory: Path) -> SyllabusIndex:
    """Load raw syllabus JSON files into an index.

    Args:
        directory: Directory holding <grade>/<subject>.json

    Returns:
        SyllabusIndex with every class found on disk
    """
    index = SyllabusIndex()

    for grade in ALLOWED_CLASSES:
        grade_dir = directory / grade
        if not grade_dir.is_dir():
            continue

        raw: dict[str, dict[str, list[str]]] = {}
        for path in sorted(grade_dir.glob("*.json")):
            if path.stem not in SUBJECT_KEYS:
                logger.warning("syllabus.unknown_subject", grade=grade, file=path.name)
                continue
            with open(path, encoding="utf-8") as f:
                raw[path.stem] = json.load(f)

        index.grades_by_key[grade] = build_grade_syllabus(grade, raw)

    logger.debug("syllabus.loaded", directory=str(directory), grades=index.grades())
    return index


def default_syllabus() -> SyllabusIndex:
    """Load the syllabus bundled with the package."""
    return load_syllabus(BUNDLED_SYLLABUS_DIR)
