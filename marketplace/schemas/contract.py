import enum
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ContractStatus(str, enum.Enum):
    SENT_TO_TALENT = "sent_to_talent"
    DECLINED_BY_TALENT = "declined_by_talent"
    SIGNED_BY_BOTH = "signed_by_both"


# Blank strings are accepted here and reported field by field by the
# service so the client gets every missing field at once.
class ContractCreateRequest(BaseModel):
    mission_id: UUID
    talent_id: UUID
    title: str = ""
    scope: str = ""
    budget: str = ""
    start_date: date | None = None
    end_date: date | None = None
    payment_details: str | None = None
    recruiter_signature: str = ""


class ContractSignRequest(BaseModel):
    talent_signature: str = ""


class ContractResponse(BaseModel):
    id: UUID
    mission_id: UUID
    recruiter_id: UUID
    talent_id: UUID
    title: str
    content: str
    scope: str
    budget: str
    payment_details: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ContractStatus
    pdf_url: str | None = None
    signed_pdf_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
