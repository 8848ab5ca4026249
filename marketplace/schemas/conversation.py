from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


# Schema for request body when opening a conversation. Recruiters supply
# talent_id, talents supply recruiter_id.
class ConversationCreateRequest(BaseModel):
    mission_id: UUID | None = None
    talent_id: UUID | None = None
    recruiter_id: UUID | None = None


class ConversationResponse(BaseModel):
    id: UUID
    recruiter_id: UUID
    talent_id: UUID
    mission_id: UUID | None = None
    talent_name: str | None = None
    talent_profile_image: str | None = None
    recruiter_name: str | None = None
    recruiter_profile_image: str | None = None
    last_message_text: str | None = None
    last_message_at: datetime | None = None
    deleted_by: list[UUID] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CountResponse(BaseModel):
    count: int
