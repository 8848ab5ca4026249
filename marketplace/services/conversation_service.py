import logging
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from marketplace.logic.party_resolution import (
    coerce_role,
    counterpart_of,
    is_party,
    resolve_parties,
    role_in,
)
from marketplace.models import Conversation, Message
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.message_repository import MessageRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.schemas.roles import UserRole

from .exceptions import (
    ConflictError,
    ConversationNotFoundError,
    DatabaseError,
    InvalidInputError,
    NotAuthorizedError,
)

logger = logging.getLogger(__name__)

CONTRACT_SIGNED_TEXT = "Contract signed by both parties"
CONTRACT_TALENT_SIGNED_TEXT = "Talent signed the contract"
CONTRACT_SENT_TEXT = "New contract sent"

# Inserts that fail on a held SQLite write lock are retried after re-reading
# the pair.
CREATE_ATTEMPTS = 3


def is_lock_error(error: OperationalError) -> bool:
    message = str(error.orig).lower()
    return "database is locked" in message or "database is busy" in message


class ConversationService:
    def __init__(
        self,
        conversation_repository: ConversationRepository,
        message_repository: MessageRepository,
        user_repository: UserRepository,
    ):
        self.conv_repo = conversation_repository
        self.msg_repo = message_repository
        self.user_repo = user_repository
        # The session is shared via the repositories
        self.session = conversation_repository.session

    async def find_or_create(
        self,
        requester_id: UUID,
        requester_role: UserRole | str,
        *,
        mission_id: UUID | None = None,
        talent_id: UUID | None = None,
        recruiter_id: UUID | None = None,
    ) -> Conversation:
        """
        Returns the conversation between the caller and the named counterpart,
        creating it on first contact.

        Creation is insert-first: when a concurrent request wins the unique
        (recruiter_id, talent_id) constraint, the winner's record is re-read
        and used as if it had been found. An insert that fails on a held
        SQLite write lock is rolled back and the pair is looked up again, up
        to CREATE_ATTEMPTS times.
        """
        recruiter_id, talent_id = resolve_parties(
            requester_role,
            requester_id,
            recruiter_id=recruiter_id,
            talent_id=talent_id,
        )

        for attempt in range(1, CREATE_ATTEMPTS + 1):
            existing = await self.conv_repo.get_conversation_by_pair(
                recruiter_id, talent_id
            )
            if existing:
                return await self._use_existing(existing, mission_id)

            talent = await self.user_repo.get_user_by_id(talent_id)
            recruiter = await self.user_repo.get_user_by_id(recruiter_id)

            try:
                conversation = await self.conv_repo.create_conversation(
                    recruiter_id,
                    talent_id,
                    mission_id=mission_id,
                    talent_name=talent.full_name if talent else None,
                    talent_profile_image=talent.profile_image if talent else None,
                    recruiter_name=recruiter.full_name if recruiter else None,
                    recruiter_profile_image=(
                        recruiter.profile_image if recruiter else None
                    ),
                )
                await self.session.commit()
            except IntegrityError as e:
                await self.session.rollback()
                winner = await self.conv_repo.get_conversation_by_pair(
                    recruiter_id, talent_id
                )
                if not winner:
                    logger.warning(
                        f"Integrity error creating conversation {recruiter_id}/{talent_id}: {e}",
                        exc_info=True,
                    )
                    raise ConflictError(
                        "Could not create conversation due to a data conflict."
                    )
                logger.info(
                    f"Conversation {recruiter_id}/{talent_id} was created concurrently; "
                    f"using {winner.id}"
                )
                return await self._use_existing(winner, mission_id)
            except OperationalError as e:
                await self.session.rollback()
                if not is_lock_error(e) or attempt == CREATE_ATTEMPTS:
                    logger.error(
                        f"Database error creating conversation: {e}", exc_info=True
                    )
                    raise DatabaseError(
                        "Failed to create conversation due to a database error."
                    )
                # The lock holder may be creating this very pair; look again.
                logger.warning(
                    f"Database locked creating conversation {recruiter_id}/{talent_id} "
                    f"(attempt {attempt}/{CREATE_ATTEMPTS})"
                )
                continue
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(f"Database error creating conversation: {e}", exc_info=True)
                raise DatabaseError(
                    "Failed to create conversation due to a database error."
                )

            logger.info(
                f"Created conversation {conversation.id} between recruiter {recruiter_id} "
                f"and talent {talent_id}"
            )
            return conversation

    async def find_all(
        self, user_id: UUID, role: UserRole | str
    ) -> Sequence[Conversation]:
        """Lists the caller's visible conversations, most recent activity first."""
        role = coerce_role(role)
        try:
            conversations = await self.conv_repo.list_user_conversations(
                user_id=user_id, role=role
            )
        except SQLAlchemyError as e:
            logger.error(f"Database error listing conversations: {e}", exc_info=True)
            raise DatabaseError("Failed to list conversations due to a database error.")

        for conversation in conversations:
            await self._refresh_display_fields(conversation)
        return conversations

    async def find_one(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> Conversation:
        """Fetches a conversation the caller is a party to."""
        role = coerce_role(role)
        conversation = await self.conv_repo.get_conversation_by_id(conversation_id)
        if not conversation:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")

        if not is_party(conversation, user_id, role):
            raise NotAuthorizedError(
                "You do not have permission to access this conversation"
            )

        await self._refresh_display_fields(conversation)
        return conversation

    async def send_message(
        self,
        conversation_id: UUID,
        sender_id: UUID,
        sender_role: UserRole | str,
        text: str,
    ) -> Message:
        """Appends an unread message addressed to the other party."""
        if not text:
            raise InvalidInputError("Message text cannot be empty")

        conversation = await self.find_one(conversation_id, sender_id, sender_role)
        receiver_id = counterpart_of(conversation, sender_role)
        return await self._post_message(conversation, sender_id, receiver_id, text)

    async def send_contract_message(
        self,
        conversation_id: UUID,
        contract_id: UUID,
        pdf_url: str,
        sender_id: UUID,
        is_signed: bool = False,
    ) -> Message:
        """Posts a contract lifecycle event into the conversation.

        The sender's side is inferred from the conversation itself.
        """
        conversation = await self.conv_repo.get_conversation_by_id(conversation_id)
        if not conversation:
            raise ConversationNotFoundError("Conversation not found")

        sender_role = role_in(conversation, sender_id)
        await self.find_one(conversation_id, sender_id, sender_role)

        if is_signed:
            text = CONTRACT_SIGNED_TEXT
        elif sender_role == UserRole.TALENT:
            text = CONTRACT_TALENT_SIGNED_TEXT
        else:
            text = CONTRACT_SENT_TEXT

        return await self._post_message(
            conversation,
            sender_id,
            counterpart_of(conversation, sender_role),
            text,
            contract_id=contract_id,
            pdf_url=pdf_url,
            is_contract_message=True,
        )

    async def get_messages(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> list[Message]:
        """Returns the whole thread, oldest message first."""
        await self.find_one(conversation_id, user_id, role)
        return await self.msg_repo.get_messages_by_conversation(conversation_id)

    async def mark_conversation_as_read(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> int:
        """
        Marks every unread message addressed to the caller as read.

        Messages the caller sent are never touched. Returns how many messages
        changed state.
        """
        await self.find_one(conversation_id, user_id, role)
        try:
            count = await self.msg_repo.mark_as_read(
                conversation_id=conversation_id,
                receiver_id=user_id,
                seen_at=datetime.now(timezone.utc),
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Database error marking conversation {conversation_id} read: {e}",
                exc_info=True,
            )
            raise DatabaseError("Failed to mark messages as read.")

        logger.debug(f"User {user_id} read {count} message(s) in {conversation_id}")
        return count

    async def get_unread_count(self, user_id: UUID) -> int:
        return await self.msg_repo.count_unread(receiver_id=user_id)

    async def get_conversation_unread_count(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> int:
        await self.find_one(conversation_id, user_id, role)
        return await self.msg_repo.count_unread(
            receiver_id=user_id, conversation_id=conversation_id
        )

    async def get_conversations_with_unread_count(self, user_id: UUID) -> int:
        return await self.msg_repo.count_conversations_with_unread(receiver_id=user_id)

    async def delete_conversation(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> Conversation:
        """
        Hides the conversation from the caller's list only. The record and its
        messages stay intact for the other party. Repeated calls are no-ops.
        """
        conversation = await self.find_one(conversation_id, user_id, role)
        if user_id in conversation.deleted_by:
            return conversation

        try:
            await self.conv_repo.add_deletion(conversation, user_id)
            await self.session.commit()
        except IntegrityError:
            # A concurrent request already recorded the same deletion
            await self.session.rollback()
            logger.info(
                f"Conversation {conversation_id} already hidden for user {user_id}"
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Database error deleting conversation {conversation_id}: {e}",
                exc_info=True,
            )
            raise DatabaseError("Failed to delete conversation due to a database error.")

        await self.session.refresh(conversation)
        return conversation

    async def _use_existing(
        self, conversation: Conversation, mission_id: UUID | None
    ) -> Conversation:
        if mission_id and conversation.mission_id != mission_id:
            conversation.mission_id = mission_id
            self.session.add(conversation)
            await self._commit(f"updating mission of conversation {conversation.id}")

        await self._refresh_display_fields(conversation)
        return conversation

    async def _refresh_display_fields(self, conversation: Conversation) -> None:
        """Fills missing party names/images from the users table.

        Users that cannot be found leave the cached fields as they are.
        """
        changed = False

        if not conversation.talent_name or not conversation.talent_profile_image:
            talent = await self.user_repo.get_user_by_id(conversation.talent_id)
            if talent and (
                conversation.talent_name != talent.full_name
                or conversation.talent_profile_image != talent.profile_image
            ):
                conversation.talent_name = talent.full_name
                conversation.talent_profile_image = talent.profile_image
                changed = True

        if not conversation.recruiter_name or not conversation.recruiter_profile_image:
            recruiter = await self.user_repo.get_user_by_id(conversation.recruiter_id)
            if recruiter and (
                conversation.recruiter_name != recruiter.full_name
                or conversation.recruiter_profile_image != recruiter.profile_image
            ):
                conversation.recruiter_name = recruiter.full_name
                conversation.recruiter_profile_image = recruiter.profile_image
                changed = True

        if not changed:
            return

        conversation_id = conversation.id
        self.session.add(conversation)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning(
                f"Could not refresh display fields of {conversation_id}: {e}"
            )
            await self.session.refresh(conversation)

    async def _post_message(
        self,
        conversation: Conversation,
        sender_id: UUID,
        receiver_id: UUID,
        text: str,
        **contract_fields,
    ) -> Message:
        try:
            message = await self.msg_repo.create_message(
                conversation_id=conversation.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                text=text,
                **contract_fields,
            )
            await self.conv_repo.update_last_message(
                conversation, text, sent_at=message.created_at
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Database error sending message in {conversation.id}: {e}",
                exc_info=True,
            )
            raise DatabaseError("Failed to send message due to a database error.")

        logger.info(
            f"Message {message.id} sent in conversation {conversation.id} "
            f"from {sender_id} to {receiver_id}"
        )
        return message

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error {action}: {e}", exc_info=True)
            raise DatabaseError(f"A database error occurred while {action}.")
