"""ExamHub - API Router."""
from fastapi import APIRouter

from examhub.api.v1.auth import router as auth_router
from examhub.api.v1.users import router as users_router
from examhub.api.v1.tests import router as tests_router
from examhub.api.v1.dashboard import router as dashboard_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(tests_router)
api_router.include_router(dashboard_router)
