"""
ExamHub - Dashboard API
"""
from fastapi import APIRouter

from examhub.api.deps import CurrentUser, DbSession
from examhub.schemas.dashboard import DashboardResponse, DashboardStats, RecentResult
from examhub.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    current_user: CurrentUser,
    db: DbSession,
) -> DashboardResponse:
    """Stats and the five most recent results for the current user."""
    service = DashboardService(db)
    stats = await service.get_stats(current_user.id)
    recent = await service.get_recent_results(current_user.id)
    
    return DashboardResponse(
        stats=DashboardStats(**stats),
        recent_results=[RecentResult.model_validate(r) for r in recent],
    )
