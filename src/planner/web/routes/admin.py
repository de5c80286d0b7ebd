"""Admin coverage endpoints.

Flat listing, grouped search, and single-record inspect/replace/delete.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from planner.core.admin import filter_groups, filter_records_by_phone, group_by_phone
from planner.core.coverage_service import CoverageService
from planner.core.errors import CoverageError
from planner.core.syllabus import parse_student_class
from planner.web.dependencies import get_coverage_service, to_http_error
from planner.web.schemas import (
    AdminCoverageListResponse,
    AdminGroupListResponse,
    AdminRecordResponse,
    AdminUpdateRequest,
    CoverageRecordResponse,
    PhoneGroupResponse,
    dump_coverage_data,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _parse_class_filter(value: str | None) -> str | None:
    """Optional class filter; present but invalid is a 400."""
    if not value:
        return None
    parsed = parse_student_class(value)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='student_class must be either "11" or "12".',
        )
    return parsed


@router.get("/coverage", response_model=AdminCoverageListResponse)
def list_coverage(
    student_class: str | None = Query(default=None),
    phone: str | None = Query(default=None),
    service: CoverageService = Depends(get_coverage_service),
) -> AdminCoverageListResponse:
    """List records, optionally by class and phone fragment."""
    grade = _parse_class_filter(student_class)

    try:
        records = filter_records_by_phone(service.list_records(grade), phone)
    except CoverageError as e:
        raise to_http_error(e)

    return AdminCoverageListResponse(
        records=[CoverageRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )


@router.get("/groups", response_model=AdminGroupListResponse)
def list_groups(
    student_class: str | None = Query(default=None),
    search: str | None = Query(default=None),
    service: CoverageService = Depends(get_coverage_service),
) -> AdminGroupListResponse:
    """Records grouped by phone, filtered by class and free-text search."""
    grade = _parse_class_filter(student_class)

    try:
        groups = filter_groups(group_by_phone(service.list_records()), grade, search)
    except CoverageError as e:
        raise to_http_error(e)

    return AdminGroupListResponse(
        groups=[PhoneGroupResponse.model_validate(g.to_dict()) for g in groups],
        total=len(groups),
    )


@router.get("/coverage/{record_id}", response_model=AdminRecordResponse)
def get_coverage_by_id(
    record_id: int,
    service: CoverageService = Depends(get_coverage_service),
) -> AdminRecordResponse:
    """Inspect a single record."""
    try:
        record = service.require_by_id(record_id)
    except CoverageError as e:
        raise to_http_error(e)

    return AdminRecordResponse(record=CoverageRecordResponse.model_validate(record))


@router.put("/coverage/{record_id}", response_model=AdminRecordResponse)
def update_coverage_by_id(
    record_id: int,
    body: AdminUpdateRequest,
    service: CoverageService = Depends(get_coverage_service),
) -> AdminRecordResponse:
    """Replace the tree of a single record."""
    try:
        record = service.replace_by_id(record_id, dump_coverage_data(body.data))
    except CoverageError as e:
        raise to_http_error(e)

    return AdminRecordResponse(
        record=CoverageRecordResponse.model_validate(record),
        message="Coverage updated successfully.",
    )


@router.delete("/coverage/{record_id}", response_model=AdminRecordResponse)
def delete_coverage_by_id(
    record_id: int,
    service: CoverageService = Depends(get_coverage_service),
) -> AdminRecordResponse:
    """Delete a single record and return what was removed."""
    try:
        record = service.require_by_id(record_id)
        service.remove_by_id(record_id)
    except CoverageError as e:
        raise to_http_error(e)

    logger.info("admin.coverage_deleted", record_id=record_id, phone=record.phone)
    return AdminRecordResponse(
        record=CoverageRecordResponse.model_validate(record),
        message="Coverage entry deleted successfully.",
    )
