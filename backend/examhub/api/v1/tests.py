"""
ExamHub - Test API
Endpoints for browsing, authoring, taking and reviewing tests
"""
import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from examhub.api.deps import AuthorUser, CurrentUser, DbSession
from examhub.models.test import Difficulty, Option, Question, Test, TestResult
from examhub.schemas.test import (
    AuthorSummary,
    OptionDetail,
    OptionPublic,
    QuestionDetail,
    TestBrief,
    TestCounts,
    TestCreate,
    TestDetail,
    TestResultItem,
    TestSubmitRequest,
    TestSubmitResponse,
    TestSummary,
)
from examhub.services.grading import (
    DuplicateSubmission,
    GradingError,
    GradingService,
    InvalidSubmission,
    PersistenceConflict,
    SubmittedAnswer,
    Submission,
    TestNotFound,
    percentage,
)
from examhub.services.repositories import SqlResultRepository, SqlTestRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tests", tags=["Tests"])

SUBMIT_SUCCESS_MESSAGE = "Test submitted successfully!"


def get_grading_service(db: DbSession) -> GradingService:
    """Grading service bound to the request's database session."""
    return GradingService(SqlTestRepository(db), SqlResultRepository(db))


Grader = Annotated[GradingService, Depends(get_grading_service)]


@router.get("", response_model=list[TestSummary])
async def list_tests(
    current_user: CurrentUser,
    db: DbSession,
    category: str | None = None,
    difficulty: Difficulty | None = None,
    search: str | None = None,
):
    """List active tests, newest first, with optional filters."""
    query = (
        select(Test)
        .where(Test.is_active.is_(True))
        .options(selectinload(Test.author))
        .order_by(Test.created_at.desc())
    )
    if category:
        query = query.where(Test.category == category)
    if difficulty:
        query = query.where(Test.difficulty == difficulty)
    if search:
        query = query.where(or_(
            Test.title.contains(search, autoescape=True),
            Test.description.contains(search, autoescape=True),
        ))

    tests = (await db.execute(query)).scalars().all()
    if not tests:
        return []

    test_ids = [t.id for t in tests]
    question_counts = dict((await db.execute(
        select(Question.test_id, func.count(Question.id))
        .where(Question.test_id.in_(test_ids))
        .group_by(Question.test_id)
    )).all())
    result_counts = dict((await db.execute(
        select(TestResult.test_id, func.count(TestResult.id))
        .where(TestResult.test_id.in_(test_ids))
        .group_by(TestResult.test_id)
    )).all())

    return [
        TestSummary(
            id=t.id,
            title=t.title,
            description=t.description,
            category=t.category,
            difficulty=t.difficulty,
            time_limit=t.time_limit,
            is_active=t.is_active,
            created_at=t.created_at,
            author=AuthorSummary.model_validate(t.author),
            counts=TestCounts(
                questions=question_counts.get(t.id, 0),
                results=result_counts.get(t.id, 0),
            ),
        )
        for t in tests
    ]


@router.get("/results/my", response_model=list[TestResultItem])
async def get_my_results(
    current_user: CurrentUser,
    db: DbSession,
):
    """Get the caller's results, newest first."""
    result = await db.execute(
        select(TestResult)
        .where(TestResult.user_id == current_user.id)
        .options(selectinload(TestResult.test))
        .order_by(TestResult.completed_at.desc())
        .execution_options(populate_existing=True)
    )
    return [_result_item(r) for r in result.scalars().all()]


@router.get("/{test_id}", response_model=TestDetail)
async def get_test(
    test_id: uuid.UUID,
    current_user: CurrentUser,
    db: DbSession,
):
    """
    Get a test with its ordered questions.
    The answer key is only included for teachers and admins.
    """
    test = await _load_test(db, test_id)
    if not test:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Test not found"
        )
    return _test_detail(test, include_answers=current_user.can_author)


@router.post("", response_model=TestDetail, status_code=status.HTTP_201_CREATED)
async def create_test(
    request: TestCreate,
    current_user: AuthorUser,
    db: DbSession,
):
    """Create a test with its questions and options (teachers and admins only)."""
    test = Test(
        title=request.title.strip(),
        description=request.description.strip() if request.description else None,
        category=request.category.strip(),
        difficulty=request.difficulty,
        time_limit=request.time_limit,
        author_id=current_user.id,
        questions=[
            Question(
                title=q.title,
                content=q.content,
                type=q.type,
                points=q.points,
                order=q_index + 1,
                options=[
                    Option(
                        content=opt.content,
                        is_correct=opt.is_correct,
                        order=opt_index + 1,
                    )
                    for opt_index, opt in enumerate(q.options)
                ],
            )
            for q_index, q in enumerate(request.questions)
        ],
    )
    db.add(test)
    await db.commit()

    logger.info("Test %s created by %s", test.id, current_user.id)

    test = await _load_test(db, test.id)
    return _test_detail(test, include_answers=True)


@router.post("/{test_id}/submit", response_model=TestSubmitResponse)
async def submit_test(
    test_id: uuid.UUID,
    request: TestSubmitRequest,
    current_user: CurrentUser,
    service: Grader,
):
    """Grade the caller's answers and record the result. One attempt per test."""
    submission = Submission(
        learner_id=current_user.id,
        test_id=test_id,
        answers=tuple(
            SubmittedAnswer(
                question_id=a.question_id,
                content=a.content,
                selected_options=tuple(a.selected_options) if a.selected_options is not None else None,
            )
            for a in request.answers
        ),
        time_spent=request.time_spent,
    )

    try:
        outcome = await service.submit(submission)
    except TestNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (DuplicateSubmission, PersistenceConflict, InvalidSubmission) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GradingError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit test",
        ) from e

    return TestSubmitResponse(
        score=outcome.score,
        total_points=outcome.total_points,
        percentage=outcome.percentage,
        message=SUBMIT_SUCCESS_MESSAGE,
    )


async def _load_test(db, test_id: uuid.UUID) -> Test | None:
    result = await db.execute(
        select(Test)
        .where(Test.id == test_id)
        .options(
            selectinload(Test.author),
            selectinload(Test.questions).selectinload(Question.options),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _test_detail(test: Test, include_answers: bool) -> TestDetail:
    option_model = OptionDetail if include_answers else OptionPublic
    return TestDetail(
        id=test.id,
        title=test.title,
        description=test.description,
        category=test.category,
        difficulty=test.difficulty,
        time_limit=test.time_limit,
        is_active=test.is_active,
        created_at=test.created_at,
        author=AuthorSummary.model_validate(test.author),
        questions=[
            QuestionDetail(
                id=q.id,
                title=q.title,
                content=q.content,
                type=q.type,
                points=q.points,
                order=q.order,
                options=[option_model.model_validate(opt) for opt in q.options],
            )
            for q in test.questions
        ],
    )


def _result_item(result: TestResult) -> TestResultItem:
    return TestResultItem(
        id=result.id,
        score=result.score,
        total_points=result.total_points,
        percentage=percentage(result.score, result.total_points),
        time_spent=result.time_spent,
        completed_at=result.completed_at,
        test=TestBrief.model_validate(result.test),
    )
