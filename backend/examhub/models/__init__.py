"""ExamHub - Models initialization."""
from examhub.models.user import User, RefreshToken, UserRole, AUTHOR_ROLES
from examhub.models.test import (
    Test,
    Question,
    Option,
    TestResult,
    ResultAnswer,
    QuestionType,
    Difficulty,
)


__all__ = [
    # User models
    "User",
    "RefreshToken",
    "UserRole",
    "AUTHOR_ROLES",
    # Test models
    "Test",
    "Question",
    "Option",
    "TestResult",
    "ResultAnswer",
    "QuestionType",
    "Difficulty",
]
