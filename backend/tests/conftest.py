"""
ExamHub - Test Configuration
Pytest fixtures and configuration for testing
"""
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from examhub.core.database import Base, get_db
from examhub.core.security import create_access_token, get_password_hash
from examhub.main import app
from examhub.models import Option, Question, QuestionType, Test, User, UserRole


@pytest_asyncio.fixture(scope="function")
async def session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to a fresh SQLite database for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""
    
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac
    
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user_data() -> dict[str, Any]:
    """Sample user registration data."""
    return {
        "name": "Test User",
        "email": "test@example.com",
        "password": "secret123",
    }


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory that inserts a user directly."""
    
    async def _make_user(email: str = "learner@example.com", role: UserRole = UserRole.USER) -> User:
        user = User(
            email=email,
            name=email.split("@")[0],
            hashed_password=get_password_hash("secret123"),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    
    return _make_user


@pytest_asyncio.fixture
async def learner(make_user) -> User:
    return await make_user("learner@example.com", UserRole.USER)


@pytest_asyncio.fixture
async def teacher(make_user) -> User:
    return await make_user("teacher@example.com", UserRole.TEACHER)


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build a bearer header for a user."""
    
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(
            subject=str(user.id),
            additional_claims={"role": UserRole(user.role).value},
        )
        return {"Authorization": f"Bearer {token}"}
    
    return _headers


@pytest_asyncio.fixture
async def quiz(db_session: AsyncSession, teacher: User) -> Test:
    """
    Two-question test worth 2 points each.
    Q1 is single choice (B correct), Q2 is multiple choice (A and C correct).
    """
    test = Test(
        title="Python Basics",
        description="Core language questions",
        category="programming",
        difficulty="EASY",
        author_id=teacher.id,
        questions=[
            Question(
                title="Which keyword defines a function?",
                type=QuestionType.SINGLE_CHOICE,
                points=2,
                order=1,
                options=[
                    Option(content="func", is_correct=False, order=1),
                    Option(content="def", is_correct=True, order=2),
                    Option(content="fn", is_correct=False, order=3),
                ],
            ),
            Question(
                title="Which are immutable?",
                type=QuestionType.MULTIPLE_CHOICE,
                points=2,
                order=2,
                options=[
                    Option(content="tuple", is_correct=True, order=1),
                    Option(content="list", is_correct=False, order=2),
                    Option(content="str", is_correct=True, order=3),
                ],
            ),
        ],
    )
    db_session.add(test)
    await db_session.commit()
    await db_session.refresh(test, ["created_at"])
    return test
