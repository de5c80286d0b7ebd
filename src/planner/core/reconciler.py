"""Coverage reconciliation.

A progress tree (coverage data) has the shape:

    {subject_key: {chapter_title: {"completed": bool,
                                   "comment": str,
                                   "topics": {topic_title: {"completed": bool,
                                                            "comment": str}}}}}

State is keyed by title, not by the definition's stable id. Renaming a
chapter or topic in the syllabus leaves the old entry orphaned; it is
kept in storage but no longer matched.

Reconciliation only ever adds missing entries. It never removes or
rewrites what is already stored.

Every function here returns a new tree and leaves its input untouched.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from planner.core.errors import InvalidCoverageDataError
from planner.core.syllabus import ChapterDefinition, GradeSyllabus, SyllabusIndex

CoverageData = dict[str, dict[str, dict[str, Any]]]


def new_topic_state() -> dict[str, Any]:
    return {"completed": False, "comment": ""}


def new_chapter_state() -> dict[str, Any]:
    return {"completed": False, "comment": "", "topics": {}}


def clone_coverage(data: Mapping[str, Any]) -> CoverageData:
    """Deep copy a tree so the caller's value is never aliased."""
    return copy.deepcopy(dict(data))


# =============================================================================
# DEFAULT INSERTION
# =============================================================================


def _ensure_subject(tree: CoverageData, subject: str) -> dict[str, Any]:
    if subject not in tree:
        tree[subject] = {}
    return tree[subject]


def _ensure_chapter(subject_state: dict[str, Any], chapter_title: str) -> dict[str, Any]:
    if chapter_title not in subject_state:
        subject_state[chapter_title] = new_chapter_state()
    chapter_state = subject_state[chapter_title]
    # Older rows may lack the topics map entirely
    if "topics" not in chapter_state:
        chapter_state["topics"] = {}
    return chapter_state


def _ensure_topic(chapter_state: dict[str, Any], topic_title: str) -> dict[str, Any]:
    topics = chapter_state["topics"]
    if topic_title not in topics:
        topics[topic_title] = new_topic_state()
    return topics[topic_title]


def _fill_from_definition(tree: CoverageData, grade: GradeSyllabus) -> CoverageData:
    for subject in grade.subjects:
        subject_state = _ensure_subject(tree, subject.subject)
        for chapter in subject.chapters:
            chapter_state = _ensure_chapter(subject_state, chapter.title)
            for topic in chapter.topics:
                _ensure_topic(chapter_state, topic.title)
    return tree


# =============================================================================
# TREE EDITS
# =============================================================================


def toggle_chapter(
    tree: Mapping[str, Any],
    subject: str,
    chapter_title: str,
    completed: bool,
    definition: ChapterDefinition | None = None,
) -> CoverageData:
    """Set a chapter's completion and cascade it to every topic under it.

    Topics of definition that the tree lacks are inserted first, so the
    cascade reaches them. Without a definition only the topics already in
    the tree are touched; reconcile the tree beforehand in that case.
    """
    result = clone_coverage(tree)
    chapter_state = _ensure_chapter(_ensure_subject(result, subject), chapter_title)
    if definition is not None:
        for topic in definition.topics:
            _ensure_topic(chapter_state, topic.title)

    chapter_state["completed"] = completed
    for topic_state in chapter_state["topics"].values():
        topic_state["completed"] = completed

    return result


def toggle_topic(
    tree: Mapping[str, Any],
    subject: str,
    chapter_title: str,
    topic_title: str,
    completed: bool,
) -> CoverageData:
    """Set a topic's completion and recompute its chapter.

    The chapter is completed iff every topic under it is completed.
    """
    result = clone_coverage(tree)
    chapter_state = _ensure_chapter(_ensure_subject(result, subject), chapter_title)
    _ensure_topic(chapter_state, topic_title)["completed"] = completed

    chapter_state["completed"] = all(
        bool(t.get("completed")) for t in chapter_state["topics"].values()
    )
    return result


def set_chapter_comment(
    tree: Mapping[str, Any],
    subject: str,
    chapter_title: str,
    comment: str,
) -> CoverageData:
    result = clone_coverage(tree)
    _ensure_chapter(_ensure_subject(result, subject), chapter_title)["comment"] = comment
    return result


def set_topic_comment(
    tree: Mapping[str, Any],
    subject: str,
    chapter_title: str,
    topic_title: str,
    comment: str,
) -> CoverageData:
    result = clone_coverage(tree)
    chapter_state = _ensure_chapter(_ensure_subject(result, subject), chapter_title)
    _ensure_topic(chapter_state, topic_title)["comment"] = comment
    return result


# =============================================================================
# SHAPE VALIDATION
# =============================================================================


def _check_state(state: Any, path: str) -> None:
    if not isinstance(state, Mapping):
        raise InvalidCoverageDataError(path, "expected an object")
    if "completed" in state and not isinstance(state["completed"], bool):
        raise InvalidCoverageDataError(f"{path}.completed", "expected a boolean")
    if "comment" in state and not isinstance(state["comment"], str):
        raise InvalidCoverageDataError(f"{path}.comment", "expected a string")


def validate_tree(tree: Any) -> None:
    """Check the structure of a client-supplied progress tree.

    Missing fields are allowed (reconciliation fills them); wrongly typed
    ones are not.

    Raises:
        InvalidCoverageDataError: On the first structural violation found
    """
    if not isinstance(tree, Mapping):
        raise InvalidCoverageDataError("$", "expected an object")

    for subject, chapters in tree.items():
        if not isinstance(chapters, Mapping):
            raise InvalidCoverageDataError(subject, "expected an object")
        for chapter_title, chapter_state in chapters.items():
            chapter_path = f"{subject}.{chapter_title}"
            _check_state(chapter_state, chapter_path)
            topics = chapter_state.get("topics", {})
            if not isinstance(topics, Mapping):
                raise InvalidCoverageDataError(f"{chapter_path}.topics", "expected an object")
            for topic_title, topic_state in topics.items():
                _check_state(topic_state, f"{chapter_path}.topics.{topic_title}")


def _normalize_states(tree: CoverageData) -> CoverageData:
    """Add missing completed/comment fields to every stored state."""
    for chapters in tree.values():
        if not isinstance(chapters, dict):
            continue
        for chapter_state in chapters.values():
            if not isinstance(chapter_state, dict):
                continue
            chapter_state.setdefault("completed", False)
            chapter_state.setdefault("comment", "")
            topics = chapter_state.setdefault("topics", {})
            for topic_state in topics.values():
                if not isinstance(topic_state, dict):
                    continue
                topic_state.setdefault("completed", False)
                topic_state.setdefault("comment", "")
    return tree


# =============================================================================
# RECONCILER
# =============================================================================


class CoverageReconciler:
    """Keeps progress trees in step with the current syllabus definition."""

    def __init__(self, syllabus: SyllabusIndex):
        self.syllabus = syllabus

    def blank(self, student_class: str) -> CoverageData:
        """Build a fully-populated tree with every entry not completed.

        Raises:
            UnknownClassError: If the class has no definition
        """
        grade = self.syllabus.get_grade(student_class)
        return _fill_from_definition({}, grade)

    def reconcile(self, student_class: str, tree: Mapping[str, Any]) -> CoverageData:
        """Insert defaults for every definition entry missing from tree.

        Existing entries, including ones the definition no longer has,
        keep their values. Idempotent.

        Raises:
            UnknownClassError: If the class has no definition
            InvalidCoverageDataError: If tree has the wrong structure
        """
        grade = self.syllabus.get_grade(student_class)
        validate_tree(tree)
        result = _normalize_states(clone_coverage(tree))
        return _fill_from_definition(result, grade)

    def orphaned_entries(
        self,
        student_class: str,
        tree: Mapping[str, Any],
    ) -> list[tuple[str, str, str | None]]:
        """List stored entries that the current definition no longer has.

        Returns:
            (subject, chapter_title, topic_title) tuples; topic_title is None
            when the whole chapter is orphaned

        Raises:
            InvalidCoverageDataError: If tree has the wrong structure
        """
        grade = self.syllabus.get_grade(student_class)
        validate_tree(tree)
        known = {s.subject: s for s in grade.subjects}
        orphans: list[tuple[str, str, str | None]] = []

        for subject, chapters in tree.items():
            definition = known.get(subject)
            for chapter_title, chapter_state in chapters.items():
                chapter = definition.get_chapter(chapter_title) if definition else None
                if chapter is None:
                    orphans.append((subject, chapter_title, None))
                    continue
                topic_titles = {t.title for t in chapter.topics}
                for topic_title in chapter_state.get("topics", {}):
                    if topic_title not in topic_titles:
                        orphans.append((subject, chapter_title, topic_title))

        return orphans
