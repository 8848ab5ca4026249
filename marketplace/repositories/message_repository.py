import uuid
from datetime import datetime

from sqlalchemy import distinct, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Message

from .base import BaseRepository


class MessageRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def create_message(
        self,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        receiver_id: uuid.UUID,
        text: str,
        *,
        contract_id: uuid.UUID | None = None,
        pdf_url: str | None = None,
        is_contract_message: bool = False,
    ) -> Message:
        """Creates and adds a new unread message to the session."""
        new_message = Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            text=text,
            is_read=False,
            contract_id=contract_id,
            pdf_url=pdf_url,
            is_contract_message=is_contract_message,
        )
        self.session.add(new_message)
        await self.session.flush()
        return new_message

    async def get_messages_by_conversation(
        self, conversation_id: uuid.UUID
    ) -> list[Message]:
        """Retrieves all messages for a given conversation, ordered by creation time."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_as_read(
        self, conversation_id: uuid.UUID, receiver_id: uuid.UUID, seen_at: datetime
    ) -> int:
        """Flips every unread message addressed to receiver_id in one statement.

        Returns the number of messages transitioned.
        """
        stmt = (
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.receiver_id == receiver_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True, seen_at=seen_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def count_unread(
        self, receiver_id: uuid.UUID, conversation_id: uuid.UUID | None = None
    ) -> int:
        """Counts unread messages addressed to receiver_id, optionally in one conversation."""
        stmt = select(func.count(Message.id)).where(
            Message.receiver_id == receiver_id,
            Message.is_read.is_(False),
        )
        if conversation_id is not None:
            stmt = stmt.where(Message.conversation_id == conversation_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_conversations_with_unread(self, receiver_id: uuid.UUID) -> int:
        """Counts distinct conversations holding at least one unread message for receiver_id."""
        stmt = select(func.count(distinct(Message.conversation_id))).where(
            Message.receiver_id == receiver_id,
            Message.is_read.is_(False),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
