import uuid

from fastapi_users import schemas

from marketplace.schemas.roles import UserRole


class UserRead(schemas.BaseUser[uuid.UUID]):
    full_name: str
    role: UserRole
    profile_image: str | None = None


class UserCreate(schemas.BaseUserCreate):
    full_name: str
    role: UserRole
    profile_image: str | None = None


class UserUpdate(schemas.BaseUserUpdate):
    full_name: str | None = None
    profile_image: str | None = None
