"""
ExamHub - Test & Result Repositories
SQLAlchemy-backed storage used by the grading service
"""
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from examhub.models.test import Question, QuestionType, ResultAnswer, Test, TestResult
from examhub.services.grading import (
    GradingError,
    GradingOutcome,
    OptionKey,
    PersistenceConflict,
    QuestionKey,
    ResultRepository,
    Submission,
    TestKey,
    TestRepository,
)

logger = logging.getLogger(__name__)


def to_answer_key(test: Test) -> TestKey:
    """Build an immutable answer key from a loaded test."""
    return TestKey(
        id=test.id,
        questions=tuple(
            QuestionKey(
                id=question.id,
                type=QuestionType(question.type),
                points=question.points,
                options=tuple(
                    OptionKey(id=option.id, is_correct=option.is_correct)
                    for option in question.options
                ),
            )
            for question in sorted(test.questions, key=lambda q: q.order)
        ),
    )


class SqlTestRepository(TestRepository):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_answer_key(self, test_id: uuid.UUID) -> TestKey | None:
        result = await self.db.execute(
            select(Test)
            .where(Test.id == test_id)
            .options(selectinload(Test.questions).selectinload(Question.options))
        )
        test = result.scalar_one_or_none()
        if test is None:
            return None
        return to_answer_key(test)


class SqlResultRepository(ResultRepository):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def exists(self, learner_id: uuid.UUID, test_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(TestResult.id).where(
                TestResult.user_id == learner_id,
                TestResult.test_id == test_id,
            )
        )
        return result.first() is not None

    async def create(self, submission: Submission, outcome: GradingOutcome) -> uuid.UUID:
        result = TestResult(
            user_id=submission.learner_id,
            test_id=submission.test_id,
            score=outcome.score,
            total_points=outcome.total_points,
            time_spent=submission.time_spent,
            answers=[
                ResultAnswer(
                    question_id=item.question_id,
                    content=item.content,
                    selected_options=item.selected_options,
                    is_correct=item.is_correct,
                    points=item.points,
                )
                for item in outcome.outcomes
            ],
        )
        self.db.add(result)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # Only a row that now exists for the same pair is a lost race;
            # anything else (dangling foreign key, bad value) is a storage fault.
            if await self.exists(submission.learner_id, submission.test_id):
                logger.warning(
                    "Result insert conflicted: learner=%s test=%s",
                    submission.learner_id, submission.test_id,
                )
                raise PersistenceConflict("You have already taken this test") from e
            logger.exception("Result insert violated a constraint")
            raise GradingError("Could not save the test result") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Failed to store test result")
            raise GradingError("Could not save the test result") from e

        return result.id
