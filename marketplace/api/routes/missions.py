from uuid import UUID

from fastapi import APIRouter, Depends, status

from marketplace.api.common import BaseRouter
from marketplace.auth_config import current_active_user, require_roles
from marketplace.logic.mission_processing import (
    handle_create_mission,
    handle_get_mission,
)
from marketplace.models import User
from marketplace.schemas.mission import MissionCreateRequest, MissionResponse
from marketplace.schemas.roles import UserRole
from marketplace.services.dependencies import get_mission_service
from marketplace.services.mission_service import MissionService

missions_router_instance = APIRouter(prefix="/missions")
router = BaseRouter(router=missions_router_instance, default_tags=["missions"])


@router.post(
    "", response_model=MissionResponse, status_code=status.HTTP_201_CREATED
)
async def create_mission(
    payload: MissionCreateRequest,
    user: User = Depends(require_roles(UserRole.RECRUITER)),
    mission_service: MissionService = Depends(get_mission_service),
):
    return await handle_create_mission(
        payload=payload, user=user, mission_service=mission_service
    )


@router.get("/{mission_id}", response_model=MissionResponse)
async def get_mission(
    mission_id: UUID,
    user: User = Depends(current_active_user),
    mission_service: MissionService = Depends(get_mission_service),
):
    return await handle_get_mission(
        mission_id=mission_id, mission_service=mission_service
    )
