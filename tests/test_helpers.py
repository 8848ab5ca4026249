from typing import Optional

from asyncstdlib import anext
from fastapi_users.db import SQLAlchemyUserDatabase
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.auth_config import get_user_manager
from marketplace.models import User
from marketplace.schemas.roles import UserRole
from marketplace.schemas.user import UserCreate


async def create_test_user(
    session_maker: async_sessionmaker[AsyncSession],
    email: str,
    password: str = "password123",
    full_name: str = "Test User",
    role: UserRole = UserRole.TALENT,
    profile_image: Optional[str] = None,
) -> User:
    """Creates a user through the real user manager so the password is hashed."""
    user_data = UserCreate(
        email=email,
        password=password,
        full_name=full_name,
        role=role,
        profile_image=profile_image,
    )
    async with session_maker() as session:
        user_manager_gen = get_user_manager(SQLAlchemyUserDatabase(session, User))
        user_manager = await anext(user_manager_gen)
        try:
            user = await user_manager.create(user_data)
            await session.commit()
            await session.refresh(user)
            return user
        finally:
            await user_manager_gen.aclose()


async def login_headers(client: AsyncClient, email: str, password: str) -> dict:
    """Logs in through the JWT route and returns bearer auth headers."""
    response = await client.post(
        "/auth/jwt/login", data={"username": email, "password": password}
    )
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
