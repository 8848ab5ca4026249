from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Conversation, ConversationDeletion
from marketplace.schemas.roles import UserRole

from .base import BaseRepository


class ConversationRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_conversation_by_id(
        self, conversation_id: UUID
    ) -> Conversation | None:
        """Retrieves a specific conversation by its ID."""
        stmt = select(Conversation).filter(Conversation.id == conversation_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_conversation_by_pair(
        self, recruiter_id: UUID, talent_id: UUID
    ) -> Conversation | None:
        """Retrieves the conversation for an exact (recruiter, talent) pair."""
        stmt = select(Conversation).filter(
            Conversation.recruiter_id == recruiter_id,
            Conversation.talent_id == talent_id,
        )
        # populate_existing so a re-read after a lost insert race sees the
        # winner's row rather than anything cached in this session
        result = await self.session.execute(
            stmt.execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def create_conversation(
        self,
        recruiter_id: UUID,
        talent_id: UUID,
        *,
        mission_id: UUID | None = None,
        talent_name: str | None = None,
        talent_profile_image: str | None = None,
        recruiter_name: str | None = None,
        recruiter_profile_image: str | None = None,
    ) -> Conversation:
        """Adds a new conversation and flushes it.

        The flush surfaces a unique-pair violation as IntegrityError.
        """
        new_conversation = Conversation(
            recruiter_id=recruiter_id,
            talent_id=talent_id,
            mission_id=mission_id,
            talent_name=talent_name,
            talent_profile_image=talent_profile_image,
            recruiter_name=recruiter_name,
            recruiter_profile_image=recruiter_profile_image,
            deletions=[],
        )
        self.session.add(new_conversation)
        await self.session.flush()
        return new_conversation

    async def list_user_conversations(
        self, user_id: UUID, role: UserRole
    ) -> Sequence[Conversation]:
        """Lists the conversations on the user's side that they have not hidden,
        most recent activity first."""
        side_column = (
            Conversation.recruiter_id
            if role == UserRole.RECRUITER
            else Conversation.talent_id
        )
        hidden = (
            select(ConversationDeletion.id)
            .where(
                ConversationDeletion.conversation_id == Conversation.id,
                ConversationDeletion.user_id == user_id,
            )
            .exists()
        )
        stmt = (
            select(Conversation)
            .filter(side_column == user_id, ~hidden)
            .order_by(
                Conversation.last_message_at.desc().nullslast(),
                Conversation.updated_at.desc(),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def update_last_message(
        self,
        conversation: Conversation,
        text: str,
        sent_at: datetime | None = None,
    ) -> None:
        """Caches the latest message preview on the conversation."""
        conversation.last_message_text = text
        conversation.last_message_at = sent_at or datetime.now(timezone.utc)
        self.session.add(conversation)
        await self.session.flush()

    async def add_deletion(
        self, conversation: Conversation, user_id: UUID
    ) -> ConversationDeletion:
        """Records that user_id hid the conversation.

        A second row for the same user violates uq_conversation_deletion_user.
        """
        deletion = ConversationDeletion(
            conversation_id=conversation.id, user_id=user_id
        )
        self.session.add(deletion)
        await self.session.flush()
        return deletion
