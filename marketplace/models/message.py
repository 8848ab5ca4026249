from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Text, false
from sqlalchemy.orm import relationship
from sqlalchemy.types import Uuid

from .base import BaseModel


class Message(BaseModel):
    __tablename__ = "messages"

    conversation_id = Column(
        Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True
    )
    sender_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    receiver_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    text = Column(Text, nullable=False)

    # Flipped once, by the receiver's bulk mark-read
    is_read = Column(Boolean, nullable=False, default=False, server_default=false())
    seen_at = Column(DateTime(timezone=True), nullable=True)

    # Contract event linkage
    contract_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    pdf_url = Column(Text, nullable=True)
    is_contract_message = Column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    conversation = relationship("Conversation", back_populates="messages")
