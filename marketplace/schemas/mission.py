import enum
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MissionStatus(str, enum.Enum):
    OPEN = "open"
    STARTED = "started"
    COMPLETED = "completed"


class MissionCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None


class MissionResponse(BaseModel):
    id: UUID
    recruiter_id: UUID
    title: str
    description: str | None = None
    status: MissionStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
