from fastapi import APIRouter, Depends

from marketplace.auth_config import current_active_user
from marketplace.models import User
from marketplace.schemas.user import UserRead

users_api_router = APIRouter(prefix="/users", tags=["users"])


@users_api_router.get("/me", response_model=UserRead)
async def read_current_user(user: User = Depends(current_active_user)):
    return user
