"""
Instructor applications module - Gated onboarding of instructors.
"""

from lms_api.modules.instructor_applications.admin_router import router as admin_router
from lms_api.modules.instructor_applications.models import (
    ApplicationStatus,
    ExperienceLevel,
    InstructorApplication,
)
from lms_api.modules.instructor_applications.router import router

__all__ = [
    "ApplicationStatus",
    "ExperienceLevel",
    "InstructorApplication",
    "admin_router",
    "router",
]
