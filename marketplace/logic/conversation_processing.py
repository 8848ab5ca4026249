import logging
from typing import Sequence
from uuid import UUID

# Logic for conversation actions, decoupled from the API routes so it can be
# exercised without HTTP.
from marketplace.models import Conversation, Message, User
from marketplace.schemas.conversation import ConversationCreateRequest
from marketplace.services.conversation_service import ConversationService

logger = logging.getLogger(__name__)


async def handle_find_or_create_conversation(
    payload: ConversationCreateRequest,
    user: User,
    conv_service: ConversationService,
) -> Conversation:
    """Opens (or reopens) the conversation between the caller and a counterpart.

    Raises:
        InvalidInputError: When the counterpart id for the caller's role is missing.
        ConflictError: When a concurrent insert could not be reconciled.
        DatabaseError: If a database error occurs during creation.
    """
    logger.debug(f"Handler: find-or-create conversation for user {user.id}")
    return await conv_service.find_or_create(
        user.id,
        user.role,
        mission_id=payload.mission_id,
        talent_id=payload.talent_id,
        recruiter_id=payload.recruiter_id,
    )


async def handle_list_conversations(
    user: User, conv_service: ConversationService
) -> Sequence[Conversation]:
    return await conv_service.find_all(user.id, user.role)


async def handle_get_conversation(
    conversation_id: UUID, user: User, conv_service: ConversationService
) -> Conversation:
    return await conv_service.find_one(conversation_id, user.id, user.role)


async def handle_send_message(
    conversation_id: UUID,
    text: str,
    user: User,
    conv_service: ConversationService,
) -> Message:
    message = await conv_service.send_message(
        conversation_id, user.id, user.role, text
    )
    logger.debug(f"Handler: message {message.id} stored in {conversation_id}")
    return message


async def handle_get_messages(
    conversation_id: UUID, user: User, conv_service: ConversationService
) -> list[Message]:
    return await conv_service.get_messages(conversation_id, user.id, user.role)


async def handle_mark_as_read(
    conversation_id: UUID, user: User, conv_service: ConversationService
) -> int:
    return await conv_service.mark_conversation_as_read(
        conversation_id, user.id, user.role
    )


async def handle_get_unread_count(user: User, conv_service: ConversationService) -> int:
    return await conv_service.get_unread_count(user.id)


async def handle_get_conversation_unread_count(
    conversation_id: UUID, user: User, conv_service: ConversationService
) -> int:
    return await conv_service.get_conversation_unread_count(
        conversation_id, user.id, user.role
    )


async def handle_get_conversations_with_unread_count(
    user: User, conv_service: ConversationService
) -> int:
    return await conv_service.get_conversations_with_unread_count(user.id)


async def handle_delete_conversation(
    conversation_id: UUID, user: User, conv_service: ConversationService
) -> Conversation:
    """Hides the conversation for the caller only."""
    conversation = await conv_service.delete_conversation(
        conversation_id, user.id, user.role
    )
    logger.info(f"Handler: conversation {conversation_id} hidden for user {user.id}")
    return conversation
