"""
ExamHub - Test Models
SQLAlchemy models for authored tests, their questions and options,
and the graded results learners submit.
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examhub.core.database import Base

if TYPE_CHECKING:
    from examhub.models.user import User


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuestionType(str, Enum):
    """Question kinds. Only the choice kinds are auto-graded."""
    SINGLE_CHOICE = "SINGLE_CHOICE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    TEXT = "TEXT"


class Test(Base):
    """An assessment made of ordered questions."""
    
    __tablename__ = "tests"    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), index=True)
    difficulty: Mapped[Difficulty] = mapped_column(String(20), default=Difficulty.MEDIUM)
    time_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Minutes
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    
    # Relationships
    author: Mapped["User"] = relationship("User", back_populates="tests")
    questions: Mapped[list["Question"]] = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="Question.order"
    )
    results: Mapped[list["TestResult"]] = relationship(
        "TestResult",
        back_populates="test",
        cascade="all, delete-orphan"
    )


class Question(Base):
    """A single gradable item within a test."""
    
    __tablename__ = "questions"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tests.id", ondelete="CASCADE"),
        index=True
    )
    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[QuestionType] = mapped_column(String(30), default=QuestionType.MULTIPLE_CHOICE)
    points: Mapped[int] = mapped_column(Integer, default=1)
    order: Mapped[int] = mapped_column(Integer, default=1)
    
    test: Mapped["Test"] = relationship("Test", back_populates="questions")
    options: Mapped[list["Option"]] = relationship(
        "Option",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Option.order"
    )


class Option(Base):
    """A selectable answer choice for a choice-type question."""
    
    __tablename__ = "options"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE"),
        index=True
    )
    content: Mapped[str] = mapped_column(Text)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[int] = mapped_column(Integer, default=1)
    
    question: Mapped["Question"] = relationship("Question", back_populates="options")


class TestResult(Base):
    """
    Graded, immutable outcome of one submission.
    
    At most one row per (user, test); the unique constraint is what
    serializes racing submissions, the service-level lookup only
    rejects the common case early.
    """
    
    __tablename__ = "test_results"
    __table_args__ = (
        UniqueConstraint("user_id", "test_id", name="uq_test_results_user_test"),
    )    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True
    )
    test_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tests.id", ondelete="CASCADE"),
        index=True
    )
    score: Mapped[int] = mapped_column(Integer)
    total_points: Mapped[int] = mapped_column(Integer)
    time_spent: Mapped[int | None] = mapped_column(Integer, nullable=True)  # Seconds
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    
    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="results")
    test: Mapped["Test"] = relationship("Test", back_populates="results")
    answers: Mapped[list["ResultAnswer"]] = relationship(
        "ResultAnswer",
        back_populates="result",
        cascade="all, delete-orphan"
    )
    
    def __repr__(self):
        return f"<TestResult test={self.test_id} score={self.score}/{self.total_points}>"


class ResultAnswer(Base):
    """Per-question grading outcome stored with a result."""
    
    __tablename__ = "result_answers"
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    result_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("test_results.id", ondelete="CASCADE"),
        index=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("questions.id", ondelete="CASCADE")
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    # JSON-encoded list of option ids, NULL when the question was unanswered
    selected_options: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    points: Mapped[int] = mapped_column(Integer, default=0)
    
    result: Mapped["TestResult"] = relationship("TestResult", back_populates="answers")
