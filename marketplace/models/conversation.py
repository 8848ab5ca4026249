from sqlalchemy import Column, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from .base import BaseModel


class Conversation(BaseModel):
    __tablename__ = "conversations"

    # Party ids are plain references: the identity store stays authoritative
    # and a vanished user must not make the thread unreadable.
    recruiter_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    talent_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    mission_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    # Denormalized display snapshots, filled lazily from the users table
    talent_name = Column(Text, nullable=True)
    talent_profile_image = Column(Text, nullable=True)
    recruiter_name = Column(Text, nullable=True)
    recruiter_profile_image = Column(Text, nullable=True)

    last_message_text = Column(Text, nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)

    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
    )
    deletions = relationship(
        "ConversationDeletion",
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint(
            "recruiter_id", "talent_id", name="uq_conversation_recruiter_talent"
        ),
    )

    @property
    def deleted_by(self) -> list:
        """Ids of users who hid this conversation from their own list."""
        return [deletion.user_id for deletion in self.deletions]


class ConversationDeletion(BaseModel):
    """One row per user who soft-deleted a conversation."""

    __tablename__ = "conversation_deletions"

    conversation_id = Column(
        Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False
    )
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    conversation = relationship("Conversation", back_populates="deletions")

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "user_id", name="uq_conversation_deletion_user"
        ),
    )
