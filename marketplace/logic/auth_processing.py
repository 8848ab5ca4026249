import logging

from fastapi import Request
from fastapi_users import models
from fastapi_users.manager import BaseUserManager

from marketplace.models import User
from marketplace.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def handle_registration(
    request_data: UserCreate,
    request: Request,
    user_manager: BaseUserManager[models.UP, models.ID],
) -> User:
    """Creates the account; safe=True keeps clients from setting superuser flags."""
    created_user = await user_manager.create(request_data, safe=True, request=request)
    logger.debug(f"Registered {created_user.id} with role {created_user.role.value}")
    return created_user
