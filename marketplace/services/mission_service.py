import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from marketplace.models import Mission
from marketplace.repositories.mission_repository import MissionRepository
from marketplace.schemas.mission import MissionStatus

from .exceptions import DatabaseError, MissionNotFoundError, NotAuthorizedError

logger = logging.getLogger(__name__)


class MissionService:
    def __init__(self, mission_repository: MissionRepository):
        self.mission_repo = mission_repository
        self.session = mission_repository.session

    async def create_mission(
        self, recruiter_id: UUID, title: str, description: str | None = None
    ) -> Mission:
        try:
            mission = await self.mission_repo.create_mission(
                recruiter_id=recruiter_id, title=title, description=description
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error creating mission: {e}", exc_info=True)
            raise DatabaseError("Failed to create mission due to a database error.")

        logger.info(f"Mission {mission.id} created by recruiter {recruiter_id}")
        return mission

    async def get_mission(self, mission_id: UUID) -> Mission:
        mission = await self.mission_repo.get_mission_by_id(mission_id)
        if not mission:
            raise MissionNotFoundError(f"Mission {mission_id} not found")
        return mission

    async def update_status(
        self, mission_id: UUID, new_status: MissionStatus, recruiter_id: UUID
    ) -> Mission:
        """Moves a mission to new_status on behalf of its owning recruiter.

        Flushes only; the caller owns the transaction.
        """
        mission = await self.get_mission(mission_id)
        if mission.recruiter_id != recruiter_id:
            raise NotAuthorizedError("Mission does not belong to recruiter")

        await self.mission_repo.update_mission_status(mission, new_status)
        logger.info(f"Mission {mission_id} moved to {new_status.value}")
        return mission
