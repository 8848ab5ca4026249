from sqlalchemy import Column, Date, Enum as SQLAlchemyEnum, ForeignKey, Text
from sqlalchemy.types import Uuid

from marketplace.schemas.contract import ContractStatus

from .base import BaseModel


class Contract(BaseModel):
    __tablename__ = "contracts"

    mission_id = Column(
        Uuid(as_uuid=True), ForeignKey("missions.id"), nullable=False, index=True
    )
    recruiter_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    talent_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    scope = Column(Text, nullable=False)
    budget = Column(Text, nullable=False)
    payment_details = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    recruiter_signature = Column(Text, nullable=False)
    talent_signature = Column(Text, nullable=True)

    status = Column(
        SQLAlchemyEnum(ContractStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ContractStatus.SENT_TO_TALENT,
        index=True,
    )
    pdf_url = Column(Text, nullable=True)
    signed_pdf_url = Column(Text, nullable=True)
