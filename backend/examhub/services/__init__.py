"""ExamHub - Services initialization."""
from examhub.services.auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    TokenError,
)
from examhub.services.dashboard import DashboardService
from examhub.services.grading import (
    GradingService,
    GradingError,
    DuplicateSubmission,
    TestNotFound,
    InvalidSubmission,
    PersistenceConflict,
)
from examhub.services.repositories import SqlResultRepository, SqlTestRepository

__all__ = [
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "TokenError",
    "DashboardService",
    "GradingService",
    "GradingError",
    "DuplicateSubmission",
    "TestNotFound",
    "InvalidSubmission",
    "PersistenceConflict",
    "SqlResultRepository",
    "SqlTestRepository",
]
