import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse

from marketplace.api.common import APIResponse, BaseRouter
from marketplace.auth_config import require_roles
from marketplace.logic.contract_processing import (
    handle_create_contract,
    handle_decline_contract,
    handle_get_contract,
    handle_get_contract_document,
    handle_list_conversation_contracts,
    handle_sign_contract,
)
from marketplace.models import User
from marketplace.schemas.contract import (
    ContractCreateRequest,
    ContractResponse,
    ContractSignRequest,
)
from marketplace.schemas.roles import UserRole
from marketplace.services.contract_service import ContractService
from marketplace.services.dependencies import get_contract_service

logger = logging.getLogger(__name__)
contracts_router_instance = APIRouter(prefix="/contracts")
router = BaseRouter(router=contracts_router_instance, default_tags=["contracts"])

party_user = require_roles(UserRole.TALENT, UserRole.RECRUITER)


@router.post(
    "", response_model=ContractResponse, status_code=status.HTTP_201_CREATED
)
async def create_contract(
    payload: ContractCreateRequest,
    user: User = Depends(require_roles(UserRole.RECRUITER)),
    contract_service: ContractService = Depends(get_contract_service),
):
    """Sends a contract to a talent and announces it in their conversation."""
    return await handle_create_contract(
        payload=payload, user=user, contract_service=contract_service
    )


@router.get(
    "/conversation/{conversation_id}", response_model=list[ContractResponse]
)
async def list_conversation_contracts(
    conversation_id: UUID,
    user: User = Depends(party_user),
    contract_service: ContractService = Depends(get_contract_service),
):
    return await handle_list_conversation_contracts(
        conversation_id=conversation_id, user=user, contract_service=contract_service
    )


@router.get("/{contract_id}", response_model=ContractResponse)
async def get_contract(
    contract_id: UUID,
    user: User = Depends(party_user),
    contract_service: ContractService = Depends(get_contract_service),
):
    return await handle_get_contract(
        contract_id=contract_id, user=user, contract_service=contract_service
    )


@router.get("/{contract_id}/document", response_class=HTMLResponse)
async def get_contract_document(
    contract_id: UUID,
    request: Request,
    version: Literal["sent", "signed"] = "sent",
    user: User = Depends(party_user),
    contract_service: ContractService = Depends(get_contract_service),
):
    """Renders the contract as an HTML document."""
    context = await handle_get_contract_document(
        contract_id=contract_id,
        version=version,
        user=user,
        contract_service=contract_service,
    )
    return APIResponse.html_response(
        template_name="contracts/document.html", context=context, request=request
    )


@router.patch("/{contract_id}/sign", response_model=ContractResponse)
async def sign_contract(
    contract_id: UUID,
    payload: ContractSignRequest,
    user: User = Depends(require_roles(UserRole.TALENT)),
    contract_service: ContractService = Depends(get_contract_service),
):
    return await handle_sign_contract(
        contract_id=contract_id,
        talent_signature=payload.talent_signature,
        user=user,
        contract_service=contract_service,
    )


@router.patch("/{contract_id}/decline", response_model=ContractResponse)
async def decline_contract(
    contract_id: UUID,
    user: User = Depends(require_roles(UserRole.TALENT)),
    contract_service: ContractService = Depends(get_contract_service),
):
    return await handle_decline_contract(
        contract_id=contract_id, user=user, contract_service=contract_service
    )
