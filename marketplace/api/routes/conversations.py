import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.common import APIResponse, BaseRouter
from marketplace.auth_config import require_roles
from marketplace.logic.conversation_processing import (
    handle_delete_conversation,
    handle_find_or_create_conversation,
    handle_get_conversation,
    handle_get_conversation_unread_count,
    handle_get_conversations_with_unread_count,
    handle_get_messages,
    handle_get_unread_count,
    handle_list_conversations,
    handle_mark_as_read,
    handle_send_message,
)
from marketplace.models import User
from marketplace.schemas.conversation import (
    ConversationCreateRequest,
    ConversationResponse,
    CountResponse,
)
from marketplace.schemas.message import MessageCreateRequest, MessageResponse
from marketplace.schemas.roles import UserRole
from marketplace.services.conversation_service import ConversationService
from marketplace.services.dependencies import get_conversation_service

logger = logging.getLogger(__name__)
conversations_router_instance = APIRouter(prefix="/conversations")
router = BaseRouter(router=conversations_router_instance, default_tags=["conversations"])

party_user = require_roles(UserRole.TALENT, UserRole.RECRUITER)


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Conversations visible to the caller, most recent activity first."""
    return await handle_list_conversations(user=user, conv_service=conv_service)


# Static paths are registered before /{conversation_id} so they are not
# parsed as ids.
@router.get("/unread-count", response_model=CountResponse)
async def get_unread_count(
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    count = await handle_get_unread_count(user=user, conv_service=conv_service)
    return APIResponse.count(count)


@router.get("/conversations-with-unread", response_model=CountResponse)
async def get_conversations_with_unread_count(
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    count = await handle_get_conversations_with_unread_count(
        user=user, conv_service=conv_service
    )
    return APIResponse.count(count)


@router.post(
    "",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def find_or_create_conversation(
    payload: ConversationCreateRequest,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Returns the caller's conversation with the named counterpart, opening it on first contact."""
    return await handle_find_or_create_conversation(
        payload=payload, user=user, conv_service=conv_service
    )


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    return await handle_get_conversation(
        conversation_id=conversation_id, user=user, conv_service=conv_service
    )


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    conversation_id: UUID,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    return await handle_get_messages(
        conversation_id=conversation_id, user=user, conv_service=conv_service
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: UUID,
    payload: MessageCreateRequest,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Sends a message to the other party of the conversation."""
    return await handle_send_message(
        conversation_id=conversation_id,
        text=payload.text,
        user=user,
        conv_service=conv_service,
    )


@router.get("/{conversation_id}/unread-count", response_model=CountResponse)
async def get_conversation_unread_count(
    conversation_id: UUID,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    count = await handle_get_conversation_unread_count(
        conversation_id=conversation_id, user=user, conv_service=conv_service
    )
    return APIResponse.count(count)


@router.post("/{conversation_id}/mark-read", response_model=CountResponse)
async def mark_conversation_as_read(
    conversation_id: UUID,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    count = await handle_mark_as_read(
        conversation_id=conversation_id, user=user, conv_service=conv_service
    )
    return APIResponse.count(count)


@router.delete("/{conversation_id}", response_model=ConversationResponse)
async def delete_conversation(
    conversation_id: UUID,
    user: User = Depends(party_user),
    conv_service: ConversationService = Depends(get_conversation_service),
):
    """Hides the conversation from the caller's list; the other party keeps it."""
    return await handle_delete_conversation(
        conversation_id=conversation_id, user=user, conv_service=conv_service
    )
