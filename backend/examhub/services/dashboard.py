"""
ExamHub - Dashboard Service
Per-user test statistics and recent results
"""
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from examhub.models.test import Test, TestResult
from examhub.services.grading import percentage

RECENT_RESULTS_LIMIT = 5


class DashboardService:
    """Aggregates a learner's activity for the dashboard view."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stats(self, user_id: uuid.UUID) -> dict:
        """
        Returns:
            {
                "total_tests": int,       # active tests in the catalogue
                "completed_tests": int,   # results recorded for the user
                "average_score": int,     # avg score / avg total points, as a percentage
                "completion_rate": int    # completed / total, as a percentage
            }
        """
        total_tests = await self.db.scalar(
            select(func.count(Test.id)).where(Test.is_active.is_(True))
        ) or 0

        row = (await self.db.execute(
            select(
                func.count(TestResult.id),
                func.avg(TestResult.score),
                func.avg(TestResult.total_points),
            ).where(TestResult.user_id == user_id)
        )).one()
        completed_tests, avg_score, avg_total = row

        average_score = 0
        if avg_score and avg_total:
            average_score = percentage(float(avg_score), float(avg_total))

        return {
            "total_tests": total_tests,
            "completed_tests": completed_tests or 0,
            "average_score": average_score,
            "completion_rate": percentage(completed_tests or 0, total_tests),
        }

    async def get_recent_results(
        self,
        user_id: uuid.UUID,
        limit: int = RECENT_RESULTS_LIMIT,
    ) -> list[TestResult]:
        result = await self.db.execute(
            select(TestResult)
            .where(TestResult.user_id == user_id)
            .options(selectinload(TestResult.test))
            .order_by(TestResult.completed_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())
