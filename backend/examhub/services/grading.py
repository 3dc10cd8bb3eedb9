"""
ExamHub - Test Grading Engine
Scores a learner's submission against a test's answer key and records
the result exactly once per (learner, test).

The scoring itself (`grade`) is a pure function of a test snapshot and a
submission. `GradingService` wraps it with the duplicate / not-found
guards and the persistence step, talking to storage only through the
repository interfaces below.
"""
import json
import logging
import math
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from examhub.models.test import QuestionType

logger = logging.getLogger(__name__)


# ============================================================================
# Errors
# ============================================================================

class GradingError(Exception):
    """Base grading error. Raised as-is for unexpected storage failures."""
    pass


class DuplicateSubmission(GradingError):
    """A result already exists for this learner and test."""
    pass


class TestNotFound(GradingError):
    """The referenced test does not exist."""
    pass


class InvalidSubmission(GradingError):
    """The submission is malformed (e.g. it carries no answers)."""
    pass


class PersistenceConflict(GradingError):
    """Storage rejected the result as a duplicate of a concurrent submission."""
    pass


# ============================================================================
# Domain snapshots
# ============================================================================

@dataclass(frozen=True)
class OptionKey:
    """Answer-key view of an option."""
    id: uuid.UUID
    is_correct: bool


@dataclass(frozen=True)
class QuestionKey:
    """Answer-key view of a question."""
    id: uuid.UUID
    type: QuestionType
    points: int
    options: tuple[OptionKey, ...] = ()

    @property
    def correct_option_ids(self) -> frozenset[uuid.UUID]:
        return frozenset(opt.id for opt in self.options if opt.is_correct)


@dataclass(frozen=True)
class TestKey:
    """A fully loaded test, questions in their defined order."""

    id: uuid.UUID
    questions: tuple[QuestionKey, ...]


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: uuid.UUID
    content: str | None = None
    # None when the client sent no selection at all
    selected_options: tuple[uuid.UUID, ...] | None = None

    @property
    def selected_set(self) -> frozenset[uuid.UUID]:
        return frozenset(self.selected_options or ())


@dataclass(frozen=True)
class Submission:
    learner_id: uuid.UUID
    test_id: uuid.UUID
    answers: tuple[SubmittedAnswer, ...]
    time_spent: int | None = None


@dataclass(frozen=True)
class AnswerOutcome:
    """Graded detail for one question."""
    question_id: uuid.UUID
    is_correct: bool
    points: int
    content: str | None = None
    selected_options: str | None = None  # JSON list of option ids


@dataclass(frozen=True)
class GradingOutcome:
    score: int
    total_points: int
    outcomes: tuple[AnswerOutcome, ...] = field(default_factory=tuple)

    @property
    def percentage(self) -> int:
        return percentage(self.score, self.total_points)


def percentage(score: int | float, total: int | float) -> int:
    """Whole-number percentage, rounding halves up. Zero when total is zero."""
    if not total:
        return 0
    return math.floor(score / total * 100 + 0.5)


def serialize_selection(selected: tuple[uuid.UUID, ...] | None) -> str | None:
    if selected is None:
        return None
    return json.dumps([str(option_id) for option_id in selected])


# ============================================================================
# Grading strategies
# ============================================================================

class GradingStrategy(ABC):
    """Decides whether an answer earns a question's points."""

    @abstractmethod
    def is_correct(self, question: QuestionKey, answer: SubmittedAnswer) -> bool:
        ...


class ChoiceStrategy(GradingStrategy):
    """
    All-or-nothing choice grading.

    Correct iff the selected option ids equal the correct option ids as
    sets; order and repeats are ignored, partial overlap scores nothing.
    """

    def is_correct(self, question: QuestionKey, answer: SubmittedAnswer) -> bool:
        return answer.selected_set == question.correct_option_ids


class UnsupportedStrategy(GradingStrategy):
    """Question kinds with no automatic grading always score zero."""

    def is_correct(self, question: QuestionKey, answer: SubmittedAnswer) -> bool:
        return False


CHOICE = ChoiceStrategy()
UNSUPPORTED = UnsupportedStrategy()


def strategy_for(question_type: QuestionType) -> GradingStrategy:
    """Pick the grading strategy for a question type."""
    match question_type:
        case QuestionType.SINGLE_CHOICE | QuestionType.MULTIPLE_CHOICE | QuestionType.TRUE_FALSE:
            return CHOICE
        case QuestionType.TEXT:
            return UNSUPPORTED
        case _:
            raise ValueError(f"No grading strategy for question type {question_type!r}")


# ============================================================================
# Pure grading
# ============================================================================

def grade(test: TestKey, submission: Submission) -> GradingOutcome:
    """
    Score a submission against a test's answer key.

    Every question counts towards the total, answered or not. When a
    submission repeats a question id the first answer is used; answers
    for questions outside the test are ignored.

    Raises:
        InvalidSubmission: If the submission carries no answers
    """
    if not submission.answers:
        raise InvalidSubmission("Submission must contain at least one answer")

    answers: dict[uuid.UUID, SubmittedAnswer] = {}
    for answer in submission.answers:
        answers.setdefault(answer.question_id, answer)

    total_score = 0
    total_points = 0
    outcomes: list[AnswerOutcome] = []

    for question in test.questions:
        total_points += question.points
        answer = answers.get(question.id)

        if answer is None:
            outcomes.append(AnswerOutcome(
                question_id=question.id,
                is_correct=False,
                points=0,
            ))
            continue

        is_correct = strategy_for(question.type).is_correct(question, answer)
        points = question.points if is_correct else 0
        total_score += points

        outcomes.append(AnswerOutcome(
            question_id=question.id,
            is_correct=is_correct,
            points=points,
            content=answer.content,
            selected_options=serialize_selection(answer.selected_options),
        ))

    return GradingOutcome(
        score=total_score,
        total_points=total_points,
        outcomes=tuple(outcomes),
    )


# ============================================================================
# Repositories & service
# ============================================================================

class TestRepository(ABC):
    """Read access to test answer keys."""

    @abstractmethod
    async def get_answer_key(self, test_id: uuid.UUID) -> TestKey | None:
        ...


class ResultRepository(ABC):
    """Write access to graded results."""

    @abstractmethod
    async def exists(self, learner_id: uuid.UUID, test_id: uuid.UUID) -> bool:
        ...

    @abstractmethod
    async def create(self, submission: Submission, outcome: GradingOutcome) -> uuid.UUID:
        """
        Store a result and its per-question outcomes atomically.

        Raises:
            PersistenceConflict: If a result for the same learner and test
                was stored first
        """
        ...


class GradingService:
    """Guards, grades and records test submissions."""

    def __init__(self, tests: TestRepository, results: ResultRepository):
        self.tests = tests
        self.results = results

    async def submit(self, submission: Submission) -> GradingOutcome:
        """
        Grade a submission and record its result.

        Raises:
            InvalidSubmission: Submission carries no answers
            DuplicateSubmission: The learner already has a result for the test
            TestNotFound: The test does not exist
            PersistenceConflict: A concurrent submission was stored first
            GradingError: Storage failed for any other reason
        """
        if not submission.answers:
            raise InvalidSubmission("Submission must contain at least one answer")

        if await self.results.exists(submission.learner_id, submission.test_id):
            logger.warning(
                "Rejected duplicate submission: learner=%s test=%s",
                submission.learner_id, submission.test_id,
            )
            raise DuplicateSubmission("You have already taken this test")

        test = await self.tests.get_answer_key(submission.test_id)
        if test is None:
            raise TestNotFound("Test not found")

        outcome = grade(test, submission)
        await self.results.create(submission, outcome)

        logger.info(
            "Graded submission: learner=%s test=%s score=%d/%d",
            submission.learner_id, submission.test_id,
            outcome.score, outcome.total_points,
        )
        return outcome
