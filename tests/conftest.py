from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from answerly import models
from answerly.auth import create_token
from answerly.database import Base, get_db_session
from answerly.main import app
from answerly.schemas import QuestionCreate


@pytest_asyncio.fixture
async def engine(tmp_path):
    # Eigene SQLite-Datei pro Test; mehrere Verbindungen für Nebenläufigkeitstests
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db_session():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def auth_header(user_id: str, roles=None) -> dict:
    return {"Authorization": f"Bearer {create_token(user_id, roles or [])}"}


def trivia_questions():
    return [
        QuestionCreate(text="2+2?", options=["3", "4"], answer="4"),
        QuestionCreate(text="Capital of France?", options=["Paris", "Rome"], answer="Paris"),
    ]


def make_set(title="Trivia", mode=models.SetMode.QUIZ, correct=("4", "Paris")):
    """Unsaved set with fixed question ids for pure aggregation/scoring tests."""
    texts = ["2+2?", "Capital of France?", "Largest planet?"]
    options = [["3", "4"], ["Paris", "Rome"], ["Mars", "Jupiter"]]
    questions = [
        models.Question(
            id=i + 1, position=i, text=texts[i], options=options[i], correct_answer=c
        )
        for i, c in enumerate(correct)
    ]
    return models.QuestionSet(
        id=1,
        owner_id="u1",
        title=title,
        mode=mode,
        slug="abcdefghij",
        is_public=True,
        time_limit_seconds=60,
        questions=questions,
    )


def make_answer(name=None, owner_id=None, answers=None, score=None, minutes=0, answer_key=None):
    return models.Answer(
        question_set_id=1,
        owner_id=owner_id,
        respondent_name=name or owner_id or "Anonymous",
        respondent_key=f"user:{owner_id}" if owner_id else f"name:{name}",
        answers=answers or {},
        score=score,
        answer_key=answer_key,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )
