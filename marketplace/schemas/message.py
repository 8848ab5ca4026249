import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreateRequest(BaseModel):
    text: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    text: str
    is_read: bool
    seen_at: datetime | None = None
    contract_id: uuid.UUID | None = None
    pdf_url: str | None = None
    is_contract_message: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
