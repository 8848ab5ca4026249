from uuid import UUID

from marketplace.models import Mission, User
from marketplace.schemas.mission import MissionCreateRequest
from marketplace.services.mission_service import MissionService


async def handle_create_mission(
    payload: MissionCreateRequest, user: User, mission_service: MissionService
) -> Mission:
    return await mission_service.create_mission(
        recruiter_id=user.id, title=payload.title, description=payload.description
    )


async def handle_get_mission(mission_id: UUID, mission_service: MissionService) -> Mission:
    return await mission_service.get_mission(mission_id)
