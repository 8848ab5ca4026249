from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.db import get_db_session

from .contract_repository import ContractRepository
from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository
from .mission_repository import MissionRepository
from .user_repository import UserRepository


def get_conversation_repository(
    session: AsyncSession = Depends(get_db_session),
) -> ConversationRepository:
    return ConversationRepository(session)


def get_user_repository(
    session: AsyncSession = Depends(get_db_session),
) -> UserRepository:
    """Dependency provider for UserRepository."""
    return UserRepository(session)


def get_message_repository(
    session: AsyncSession = Depends(get_db_session),
) -> MessageRepository:
    """Dependency provider for MessageRepository."""
    return MessageRepository(session)


def get_mission_repository(
    session: AsyncSession = Depends(get_db_session),
) -> MissionRepository:
    return MissionRepository(session)


def get_contract_repository(
    session: AsyncSession = Depends(get_db_session),
) -> ContractRepository:
    return ContractRepository(session)
