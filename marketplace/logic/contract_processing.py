import logging
from typing import Sequence
from uuid import UUID

from marketplace.models import Contract, User
from marketplace.schemas.contract import ContractCreateRequest
from marketplace.services.contract_service import ContractService

logger = logging.getLogger(__name__)


async def handle_create_contract(
    payload: ContractCreateRequest, user: User, contract_service: ContractService
) -> Contract:
    """Sends a contract from the calling recruiter.

    Raises:
        ContractValidationError: Listing every blank required field.
        MissionNotFoundError / UserNotFoundError: Unknown mission or parties.
        NotAuthorizedError: The mission belongs to another recruiter.
    """
    return await contract_service.create(user.id, payload)


async def handle_sign_contract(
    contract_id: UUID,
    talent_signature: str,
    user: User,
    contract_service: ContractService,
) -> Contract:
    contract = await contract_service.sign(contract_id, user.id, talent_signature)
    logger.debug(f"Handler: contract {contract_id} now {contract.status.value}")
    return contract


async def handle_decline_contract(
    contract_id: UUID, user: User, contract_service: ContractService
) -> Contract:
    return await contract_service.decline(contract_id, user.id)


async def handle_get_contract(
    contract_id: UUID, user: User, contract_service: ContractService
) -> Contract:
    return await contract_service.find_one(contract_id, user.id, user.role)


async def handle_list_conversation_contracts(
    conversation_id: UUID, user: User, contract_service: ContractService
) -> Sequence[Contract]:
    return await contract_service.find_by_conversation(
        conversation_id, user.id, user.role
    )


async def handle_get_contract_document(
    contract_id: UUID, version: str, user: User, contract_service: ContractService
) -> dict:
    return await contract_service.get_document_context(
        contract_id, user.id, user.role, version
    )
