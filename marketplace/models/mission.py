from sqlalchemy import Column, Enum as SQLAlchemyEnum, ForeignKey, Text
from sqlalchemy.types import Uuid

from marketplace.schemas.mission import MissionStatus

from .base import BaseModel


class Mission(BaseModel):
    __tablename__ = "missions"

    recruiter_id = Column(
        Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLAlchemyEnum(MissionStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MissionStatus.OPEN,
    )
