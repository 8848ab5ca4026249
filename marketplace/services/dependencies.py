from fastapi import Depends

from marketplace.repositories.contract_repository import ContractRepository
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.dependencies import (
    get_contract_repository,
    get_conversation_repository,
    get_message_repository,
    get_mission_repository,
    get_user_repository,
)
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.mission_repository import MissionRepository
from marketplace.repositories.user_repository import UserRepository

from .contract_service import ContractService
from .conversation_service import ConversationService
from .mission_service import MissionService

# Services hold the request's session through their repositories, so a new
# instance is built for every request.


def get_conversation_service(
    conv_repo: ConversationRepository = Depends(get_conversation_repository),
    msg_repo: MessageRepository = Depends(get_message_repository),
    user_repo: UserRepository = Depends(get_user_repository),
) -> ConversationService:
    """Provides an instance of the ConversationService with its dependencies."""
    return ConversationService(
        conversation_repository=conv_repo,
        message_repository=msg_repo,
        user_repository=user_repo,
    )


def get_mission_service(
    mission_repo: MissionRepository = Depends(get_mission_repository),
) -> MissionService:
    return MissionService(mission_repository=mission_repo)


def get_contract_service(
    contract_repo: ContractRepository = Depends(get_contract_repository),
    mission_service: MissionService = Depends(get_mission_service),
    user_repo: UserRepository = Depends(get_user_repository),
    conv_service: ConversationService = Depends(get_conversation_service),
) -> ContractService:
    """Provides an instance of the ContractService."""
    return ContractService(
        contract_repository=contract_repo,
        mission_service=mission_service,
        user_repository=user_repo,
        conversation_service=conv_service,
    )
