"""Pydantic schemas for Web API.

Serialization models for coverage records, admin views and the syllabus.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from planner.db.coverage_repository import CoverageRecord


# =============================================================================
# COVERAGE DATA SCHEMAS
# =============================================================================


class TopicStatePayload(BaseModel):
    """Completion state of a topic."""

    completed: bool = False
    comment: str = ""


class ChapterStatePayload(BaseModel):
    """Completion state of a chapter and its topics."""

    completed: bool = False
    comment: str = ""
    topics: dict[str, TopicStatePayload] = Field(default_factory=dict)


# subject_key -> chapter_title -> chapter state
CoverageDataPayload = dict[str, dict[str, ChapterStatePayload]]


def dump_coverage_data(data: CoverageDataPayload) -> dict[str, Any]:
    """Convert a validated payload back to a plain progress tree."""
    return {
        subject: {title: chapter.model_dump() for title, chapter in chapters.items()}
        for subject, chapters in data.items()
    }


# =============================================================================
# COVERAGE SCHEMAS
# =============================================================================


class CoverageMeta(BaseModel):
    """Record metadata without the progress tree."""

    id: int
    phone: str
    student_class: str
    created_at: str
    updated_at: str
    just_created: bool = False

    @classmethod
    def from_record(cls, record: CoverageRecord, just_created: bool = False) -> CoverageMeta:
        return cls(**record.meta(), just_created=just_created)


class CoverageResponse(BaseModel):
    """Response for GET /api/coverage."""

    data: dict[str, Any]
    meta: CoverageMeta
    is_new: bool = False


class CoverageSaveRequest(BaseModel):
    """Request body for POST /api/coverage."""

    phone: str = Field(default="", max_length=40)
    student_class: str = Field(default="", max_length=4)
    data: CoverageDataPayload


class CoverageSaveResponse(BaseModel):
    """Response after saving coverage."""

    data: dict[str, Any]
    meta: CoverageMeta
    message: str = "Coverage saved successfully."


# =============================================================================
# ADMIN SCHEMAS
# =============================================================================


class CoverageRecordResponse(BaseModel):
    """A full coverage record."""

    id: int
    phone: str
    student_class: str
    data: dict[str, Any]
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class AdminCoverageListResponse(BaseModel):
    """Flat list of records for the admin view."""

    records: list[CoverageRecordResponse]
    total: int


class AdminRecordResponse(BaseModel):
    """Single record for inspect/replace/delete."""

    record: CoverageRecordResponse
    message: str | None = None


class AdminUpdateRequest(BaseModel):
    """Request body for PUT /api/admin/coverage/{id}."""

    data: CoverageDataPayload


class PhoneGroupResponse(BaseModel):
    """All records of one phone number."""

    phone: str
    formatted_phone: str
    last_updated: str
    records: list[CoverageRecordResponse]


class AdminGroupListResponse(BaseModel):
    """Grouped and filtered records."""

    groups: list[PhoneGroupResponse]
    total: int


# =============================================================================
# SYLLABUS SCHEMAS
# =============================================================================


class TopicDefinitionResponse(BaseModel):
    id: str
    title: str


class ChapterDefinitionResponse(BaseModel):
    id: str
    title: str
    topics: list[TopicDefinitionResponse]


class SubjectSyllabusResponse(BaseModel):
    grade: str
    subject: str
    title: str
    chapters: list[ChapterDefinitionResponse]


class GradeSyllabusResponse(BaseModel):
    """Syllabus definition of one class."""

    grade: str
    subjects: list[SubjectSyllabusResponse]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
