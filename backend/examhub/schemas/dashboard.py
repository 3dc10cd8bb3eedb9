"""
ExamHub - Dashboard Schemas
"""
import uuid
from datetime import datetime

from examhub.schemas.common import CamelModel
from examhub.schemas.test import TestBrief


class DashboardStats(CamelModel):
    total_tests: int
    completed_tests: int
    average_score: int  # Percentage
    completion_rate: int  # Percentage


class RecentResult(CamelModel):
    id: uuid.UUID
    score: int
    total_points: int
    time_spent: int | None = None
    completed_at: datetime
    test: TestBrief


class DashboardResponse(CamelModel):
    stats: DashboardStats
    recent_results: list[RecentResult] = []
