"""Syllabus definition endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status

from planner.core.coverage_service import CoverageService
from planner.core.errors import UnknownClassError
from planner.web.dependencies import get_coverage_service
from planner.web.schemas import GradeSyllabusResponse

router = APIRouter(prefix="/api/syllabus", tags=["syllabus"])


@router.get("/{student_class}", response_model=GradeSyllabusResponse)
async def get_syllabus(
    student_class: str,
    service: CoverageService = Depends(get_coverage_service),
) -> GradeSyllabusResponse:
    """Get the subject/chapter/topic definition of a class."""
    try:
        grade = service.syllabus.get_grade(student_class)
    except UnknownClassError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return GradeSyllabusResponse.model_validate(grade.to_dict())
