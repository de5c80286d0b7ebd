"""Core coverage logic.

Modules:
- phone: phone identity normalization
- syllabus: syllabus definition index
- reconciler: progress tree reconciliation and edits
- coverage_service: orchestration over the repository
- admin: grouping and search for admin views
- errors: error taxonomy
"""

__all__ = [
    "phone",
    "syllabus",
    "reconciler",
    "coverage_service",
    "admin",
    "errors",
]
