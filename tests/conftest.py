import os

# Settings are read at import time, so the test environment is set first.
os.environ.setdefault("SECRET", "test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from typing import Any, AsyncGenerator

import pytest
from fastapi import Depends, FastAPI
from fastapi_users.db import SQLAlchemyUserDatabase
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.db import get_db_session, get_user_db
from marketplace.main import app
from marketplace.models import User, metadata
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.schemas.roles import UserRole
from marketplace.services.conversation_service import ConversationService
from test_helpers import create_test_user, login_headers

# Use an in-memory SQLite database for testing. StaticPool keeps every
# session on the one connection that holds the database.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
test_async_session_maker = async_sessionmaker(test_engine, expire_on_commit=False)

TEST_PASSWORD = "password123"


# Master fixture to manage table creation/dropping and provide session maker
@pytest.fixture(scope="function")
async def db_test_session_manager() -> (
    AsyncGenerator[async_sessionmaker[AsyncSession], None]
):
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield test_async_session_maker

    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)


async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with test_async_session_maker() as session:
        yield session


# FastAPI resolves get_db_session here to override_get_db_session.
async def override_get_user_db(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[SQLAlchemyUserDatabase[User, Any], None]:
    yield SQLAlchemyUserDatabase(session, User)


@pytest.fixture(scope="function")
def test_app(
    db_test_session_manager: async_sessionmaker[AsyncSession],
) -> FastAPI:
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_user_db] = override_get_user_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture(scope="function")
async def recruiter(db_test_session_manager) -> User:
    return await create_test_user(
        db_test_session_manager,
        email="recruiter@example.com",
        password=TEST_PASSWORD,
        full_name="Rita Recruiter",
        role=UserRole.RECRUITER,
        profile_image="https://img.example.com/rita.png",
    )


@pytest.fixture(scope="function")
async def talent(db_test_session_manager) -> User:
    return await create_test_user(
        db_test_session_manager,
        email="talent@example.com",
        password=TEST_PASSWORD,
        full_name="Theo Talent",
        role=UserRole.TALENT,
        profile_image="https://img.example.com/theo.png",
    )


@pytest.fixture(scope="function")
async def recruiter_headers(test_client: AsyncClient, recruiter: User) -> dict:
    return await login_headers(test_client, recruiter.email, TEST_PASSWORD)


@pytest.fixture(scope="function")
async def talent_headers(test_client: AsyncClient, talent: User) -> dict:
    return await login_headers(test_client, talent.email, TEST_PASSWORD)


@pytest.fixture(scope="function")
async def db_session(
    db_test_session_manager: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with db_test_session_manager() as session:
        yield session


@pytest.fixture(scope="function")
def conversation_service(db_session: AsyncSession) -> ConversationService:
    return ConversationService(
        conversation_repository=ConversationRepository(db_session),
        message_repository=MessageRepository(db_session),
        user_repository=UserRepository(db_session),
    )
