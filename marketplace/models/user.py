import uuid

from fastapi_users.db import SQLAlchemyBaseUserTable
from sqlalchemy import Column, Enum as SQLAlchemyEnum, Text

from marketplace.schemas.roles import UserRole

from .base import BaseModel


# SQLAlchemyBaseUserTable provides email, hashed_password, is_active,
# is_superuser and is_verified.
class User(SQLAlchemyBaseUserTable[uuid.UUID], BaseModel):
    __tablename__ = "users"

    full_name = Column(Text, nullable=False)
    role = Column(
        SQLAlchemyEnum(UserRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    profile_image = Column(Text, nullable=True)
