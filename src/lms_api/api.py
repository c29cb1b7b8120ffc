from fastapi import APIRouter

from lms_api.modules.auth import router as auth_router
from lms_api.modules.instructor_applications import admin_router as admin_applications_router
from lms_api.modules.instructor_applications import router as instructor_applications_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    instructor_applications_router,
    prefix="/instructor-applications",
    tags=["Instructor Applications"],
)

api_router.include_router(
    admin_applications_router,
    prefix="/instructor-applications",
    tags=["Admin - Instructor Applications"],
)
