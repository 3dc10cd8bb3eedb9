"""
ExamHub - Grading Engine Tests
Pure scoring plus the service guards, using in-memory repositories.
"""
import json
import uuid

import pytest

from examhub.models.test import QuestionType
from examhub.services.grading import (
    DuplicateSubmission,
    GradingOutcome,
    GradingService,
    InvalidSubmission,
    OptionKey,
    PersistenceConflict,
    QuestionKey,
    ResultRepository,
    Submission,
    SubmittedAnswer,
    TestKey as AnswerKey,
    TestNotFound as MissingTest,
    TestRepository as AnswerKeyRepository,
    grade,
    percentage,
    strategy_for,
    ChoiceStrategy,
    UnsupportedStrategy,
)


A, B, C = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
LEARNER = uuid.uuid4()


def choice_question(points: int = 2, correct=(A,), qtype=QuestionType.SINGLE_CHOICE) -> QuestionKey:
    return QuestionKey(
        id=uuid.uuid4(),
        type=qtype,
        points=points,
        options=tuple(OptionKey(id=opt, is_correct=opt in correct) for opt in (A, B, C)),
    )


def make_submission(test: AnswerKey, *answers: SubmittedAnswer) -> Submission:
    return Submission(learner_id=LEARNER, test_id=test.id, answers=answers, time_spent=42)


class FakeTestRepository(AnswerKeyRepository):

    def __init__(self, *tests: AnswerKey):
        self.tests = {t.id: t for t in tests}

    async def get_answer_key(self, test_id):
        return self.tests.get(test_id)


class FakeResultRepository(ResultRepository):

    def __init__(self, conflict: bool = False):
        self.stored: dict[tuple, GradingOutcome] = {}
        self.conflict = conflict

    async def exists(self, learner_id, test_id):
        return (learner_id, test_id) in self.stored

    async def create(self, submission, outcome):
        if self.conflict:
            raise PersistenceConflict("You have already taken this test")
        self.stored[(submission.learner_id, submission.test_id)] = outcome
        return uuid.uuid4()


class TestPercentage:

    def test_zero_total_is_zero(self):
        assert percentage(0, 0) == 0

    def test_rounds_half_up(self):
        assert percentage(1, 8) == 13  # 12.5
        assert percentage(5, 8) == 63  # 62.5

    def test_whole_values(self):
        assert percentage(2, 4) == 50
        assert percentage(3, 3) == 100


class TestStrategies:

    def test_choice_types_use_set_equality(self):
        for qtype in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
            assert isinstance(strategy_for(qtype), ChoiceStrategy)

    def test_text_questions_are_not_graded(self):
        assert isinstance(strategy_for(QuestionType.TEXT), UnsupportedStrategy)


class TestGrade:

    def test_one_right_one_wrong_scores_half(self):
        q1 = choice_question(points=2, correct=(A,))
        q2 = choice_question(points=2, correct=(B,))
        test = AnswerKey(id=uuid.uuid4(), questions=(q1, q2))

        outcome = grade(test, make_submission(
            test,
            SubmittedAnswer(question_id=q1.id, selected_options=(A,)),
            SubmittedAnswer(question_id=q2.id, selected_options=(C,)),
        ))

        assert outcome.score == 2
        assert outcome.total_points == 4
        assert outcome.percentage == 50
        assert [o.is_correct for o in outcome.outcomes] == [True, False]
        assert [o.points for o in outcome.outcomes] == [2, 0]

    def test_extra_selection_is_wrong(self):
        q = choice_question(correct=(A,))
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, selected_options=(A, B)),
        ))

        assert outcome.outcomes[0].is_correct is False
        assert outcome.score == 0

    def test_partial_overlap_earns_nothing(self):
        q = choice_question(points=3, correct=(A, C), qtype=QuestionType.MULTIPLE_CHOICE)
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, selected_options=(C,)),
        ))

        assert outcome.score == 0
        assert outcome.outcomes[0].points == 0

    def test_order_and_repeats_are_ignored(self):
        q = choice_question(points=3, correct=(A, C), qtype=QuestionType.MULTIPLE_CHOICE)
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, selected_options=(C, A, C)),
        ))

        assert outcome.score == 3
        assert outcome.outcomes[0].is_correct is True

    def test_unanswered_question_scores_zero_but_counts(self):
        q1 = choice_question(points=1)
        q2 = choice_question(points=5)
        test = AnswerKey(id=uuid.uuid4(), questions=(q1, q2))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q1.id, selected_options=(A,)),
        ))

        assert outcome.total_points == 6
        unanswered = outcome.outcomes[1]
        assert unanswered.question_id == q2.id
        assert unanswered.is_correct is False
        assert unanswered.points == 0
        assert unanswered.content is None
        assert unanswered.selected_options is None

    def test_text_question_always_zero(self):
        q = QuestionKey(id=uuid.uuid4(), type=QuestionType.TEXT, points=4)
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, content="A thoughtful essay", selected_options=()),
        ))

        assert outcome.score == 0
        assert outcome.total_points == 4
        assert outcome.outcomes[0].content == "A thoughtful essay"

    def test_question_without_correct_options_matches_empty_selection(self):
        q = choice_question(points=1, correct=())
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(test, SubmittedAnswer(question_id=q.id)))

        assert outcome.outcomes[0].is_correct is True

    def test_zero_point_test_has_zero_percentage(self):
        q = choice_question(points=0)
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, selected_options=(A,)),
        ))

        assert outcome.total_points == 0
        assert outcome.percentage == 0

    def test_first_answer_for_a_question_wins(self):
        q = choice_question(points=1, correct=(A,))
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test,
            SubmittedAnswer(question_id=q.id, selected_options=(B,)),
            SubmittedAnswer(question_id=q.id, selected_options=(A,)),
        ))

        assert outcome.score == 0

    def test_answers_for_unknown_questions_are_ignored(self):
        q = choice_question(points=1, correct=(A,))
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test,
            SubmittedAnswer(question_id=uuid.uuid4(), selected_options=(A,)),
        ))

        assert outcome.score == 0
        assert len(outcome.outcomes) == 1

    def test_selection_is_serialized_as_submitted(self):
        q = choice_question(correct=(A,))
        test = AnswerKey(id=uuid.uuid4(), questions=(q,))

        outcome = grade(test, make_submission(
            test, SubmittedAnswer(question_id=q.id, selected_options=(B, A)),
        ))

        assert json.loads(outcome.outcomes[0].selected_options) == [str(B), str(A)]

    def test_empty_submission_rejected(self):
        test = AnswerKey(id=uuid.uuid4(), questions=(choice_question(),))

        with pytest.raises(InvalidSubmission):
            grade(test, make_submission(test))

    def test_grading_is_deterministic(self):
        q1 = choice_question(points=2, correct=(A,))
        q2 = choice_question(points=3, correct=(B, C), qtype=QuestionType.MULTIPLE_CHOICE)
        test = AnswerKey(id=uuid.uuid4(), questions=(q1, q2))
        submission = make_submission(
            test,
            SubmittedAnswer(question_id=q1.id, selected_options=(A,)),
            SubmittedAnswer(question_id=q2.id, selected_options=(B,)),
        )

        assert grade(test, submission) == grade(test, submission)


class TestGradingService:

    @pytest.fixture
    def answer_key(self) -> AnswerKey:
        return AnswerKey(id=uuid.uuid4(), questions=(choice_question(points=2, correct=(A,)),))

    @pytest.mark.asyncio
    async def test_submit_grades_and_stores(self, answer_key):
        results = FakeResultRepository()
        service = GradingService(FakeTestRepository(answer_key), results)
        question_id = answer_key.questions[0].id

        outcome = await service.submit(make_submission(
            answer_key, SubmittedAnswer(question_id=question_id, selected_options=(A,)),
        ))

        assert outcome.score == 2
        assert outcome.percentage == 100
        assert results.stored[(LEARNER, answer_key.id)] == outcome

    @pytest.mark.asyncio
    async def test_second_submission_is_duplicate(self, answer_key):
        results = FakeResultRepository()
        service = GradingService(FakeTestRepository(answer_key), results)
        question_id = answer_key.questions[0].id

        first = await service.submit(make_submission(
            answer_key, SubmittedAnswer(question_id=question_id, selected_options=(A,)),
        ))
        with pytest.raises(DuplicateSubmission):
            await service.submit(make_submission(
                answer_key, SubmittedAnswer(question_id=question_id, selected_options=(B,)),
            ))

        assert len(results.stored) == 1
        assert results.stored[(LEARNER, answer_key.id)] == first

    @pytest.mark.asyncio
    async def test_duplicate_checked_before_test_lookup(self, answer_key):
        results = FakeResultRepository()
        results.stored[(LEARNER, answer_key.id)] = GradingOutcome(score=0, total_points=0)
        # The test repository is empty: a lookup would raise TestNotFound
        service = GradingService(FakeTestRepository(), results)

        with pytest.raises(DuplicateSubmission):
            await service.submit(make_submission(
                answer_key, SubmittedAnswer(question_id=uuid.uuid4()),
            ))

    @pytest.mark.asyncio
    async def test_unknown_test(self):
        service = GradingService(FakeTestRepository(), FakeResultRepository())

        with pytest.raises(MissingTest):
            await service.submit(Submission(
                learner_id=LEARNER,
                test_id=uuid.uuid4(),
                answers=(SubmittedAnswer(question_id=uuid.uuid4()),),
            ))

    @pytest.mark.asyncio
    async def test_empty_submission_stores_nothing(self, answer_key):
        results = FakeResultRepository()
        service = GradingService(FakeTestRepository(answer_key), results)

        with pytest.raises(InvalidSubmission):
            await service.submit(make_submission(answer_key))

        assert results.stored == {}

    @pytest.mark.asyncio
    async def test_storage_conflict_propagates(self, answer_key):
        service = GradingService(FakeTestRepository(answer_key), FakeResultRepository(conflict=True))

        with pytest.raises(PersistenceConflict):
            await service.submit(make_submission(
                answer_key, SubmittedAnswer(question_id=answer_key.questions[0].id, selected_options=(A,)),
            ))
