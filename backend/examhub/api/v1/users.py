"""
ExamHub - User API Routes
Endpoints for the current user's profile
"""
from fastapi import APIRouter
from sqlalchemy import func, select

from examhub.api.deps import CurrentUser, DbSession
from examhub.models.test import Test, TestResult
from examhub.schemas.user import UserProfile, UserUpdate

router = APIRouter(prefix="/users", tags=["Users"])


async def _build_profile(user, db) -> UserProfile:
    completed = await db.scalar(
        select(func.count(TestResult.id)).where(TestResult.user_id == user.id)
    )
    authored = await db.scalar(
        select(func.count(Test.id)).where(Test.author_id == user.id)
    )
    profile = UserProfile.model_validate(user)
    profile.completed_tests = completed or 0
    profile.authored_tests = authored or 0
    return profile


@router.get(
    "/profile",
    response_model=UserProfile,
    summary="Get user profile",
)
async def get_profile(
    current_user: CurrentUser,
    db: DbSession,
) -> UserProfile:
    """Get current user's profile with activity counters."""
    return await _build_profile(current_user, db)


@router.patch(
    "/profile",
    response_model=UserProfile,
    summary="Update user profile",
)
async def update_profile(
    user_update: UserUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> UserProfile:
    """Update current user's profile."""
    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)
    
    await db.flush()
    await db.refresh(current_user)
    
    return await _build_profile(current_user, db)
