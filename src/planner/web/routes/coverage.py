"""Student coverage endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from planner.core.coverage_service import CoverageService
from planner.core.errors import CoverageError
from planner.core.syllabus import parse_student_class
from planner.web.dependencies import get_coverage_service, to_http_error
from planner.web.schemas import (
    CoverageMeta,
    CoverageResponse,
    CoverageSaveRequest,
    CoverageSaveResponse,
    dump_coverage_data,
)

router = APIRouter(prefix="/api/coverage", tags=["coverage"])


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.get("", response_model=CoverageResponse)
def get_coverage(
    phone: str = Query(default=""),
    student_class: str = Query(default=""),
    service: CoverageService = Depends(get_coverage_service),
) -> CoverageResponse:
    """Load coverage for a phone/class, creating a blank record on first access."""
    if not phone.strip():
        raise _bad_request("Missing phone query parameter.")
    if parse_student_class(student_class) is None:
        raise _bad_request("Missing or invalid student_class query parameter.")

    try:
        result = service.ensure_record(phone, student_class)
    except CoverageError as e:
        raise to_http_error(e)

    record = service.reconciled(result.record)
    return CoverageResponse(
        data=record.data,
        meta=CoverageMeta.from_record(record, just_created=result.is_new),
        is_new=result.is_new,
    )


@router.post("", response_model=CoverageSaveResponse)
def save_coverage(
    body: CoverageSaveRequest,
    service: CoverageService = Depends(get_coverage_service),
) -> CoverageSaveResponse:
    """Replace the coverage tree of a phone/class."""
    if not body.phone.strip():
        raise _bad_request("Phone is required.")
    if parse_student_class(body.student_class) is None:
        raise _bad_request('student_class must be either "11" or "12".')

    try:
        record = service.replace_data(
            body.phone, body.student_class, dump_coverage_data(body.data)
        )
    except CoverageError as e:
        raise to_http_error(e)

    return CoverageSaveResponse(data=record.data, meta=CoverageMeta.from_record(record))
