"""
ExamHub - Test Schemas
Pydantic schemas for test authoring, taking and submission
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import Field

from examhub.models.test import Difficulty, QuestionType
from examhub.schemas.common import CamelModel


# ============================================================================
# Authoring
# ============================================================================

class OptionCreate(CamelModel):
    content: Annotated[str, Field(min_length=1)]
    is_correct: bool = False


class QuestionCreate(CamelModel):
    title: Annotated[str, Field(min_length=1, max_length=200)]
    content: str | None = None
    type: QuestionType = QuestionType.MULTIPLE_CHOICE
    points: Annotated[int, Field(ge=0)] = 1
    options: list[OptionCreate] = []


class TestCreate(CamelModel):
    """Request to create a test with its questions."""
    title: Annotated[str, Field(min_length=3, max_length=200)]
    description: str | None = None
    category: Annotated[str, Field(min_length=2, max_length=100)]
    difficulty: Difficulty
    time_limit: Annotated[int, Field(ge=1)] | None = None
    questions: Annotated[list[QuestionCreate], Field(min_length=1)]


# ============================================================================
# Reading
# ============================================================================

class AuthorSummary(CamelModel):
    id: uuid.UUID
    name: str


class OptionPublic(CamelModel):
    """Option as shown to test takers, without the answer key."""
    id: uuid.UUID
    content: str
    order: int


class OptionDetail(OptionPublic):
    is_correct: bool


class QuestionDetail(CamelModel):
    id: uuid.UUID
    title: str
    content: str | None = None
    type: QuestionType
    points: int
    order: int
    options: list[OptionDetail | OptionPublic] = []


class TestCounts(CamelModel):
    questions: int = 0
    results: int = 0


class TestSummary(CamelModel):
    """Test as listed in the catalogue."""
    id: uuid.UUID
    title: str
    description: str | None = None
    category: str
    difficulty: Difficulty
    time_limit: int | None = None
    is_active: bool
    created_at: datetime
    author: AuthorSummary
    counts: TestCounts = TestCounts()


class TestDetail(CamelModel):
    """Test with its ordered questions and options."""
    id: uuid.UUID
    title: str
    description: str | None = None
    category: str
    difficulty: Difficulty
    time_limit: int | None = None
    is_active: bool
    created_at: datetime
    author: AuthorSummary
    questions: list[QuestionDetail] = []


class TestBrief(CamelModel):
    id: uuid.UUID
    title: str
    category: str
    difficulty: Difficulty


# ============================================================================
# Submission
# ============================================================================

class AnswerSubmit(CamelModel):
    question_id: uuid.UUID
    content: str | None = None
    selected_options: list[uuid.UUID] | None = None


class TestSubmitRequest(CamelModel):
    """Request to submit a test attempt."""
    answers: Annotated[list[AnswerSubmit], Field(min_length=1)]
    time_spent: Annotated[int, Field(ge=0)] | None = None


class TestSubmitResponse(CamelModel):
    score: int
    total_points: int
    percentage: int
    message: str


class TestResultItem(CamelModel):
    """A past result in the caller's history."""
    id: uuid.UUID
    score: int
    total_points: int
    percentage: int
    time_spent: int | None = None
    completed_at: datetime
    test: TestBrief
