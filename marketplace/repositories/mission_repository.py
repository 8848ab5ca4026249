from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Mission
from marketplace.schemas.mission import MissionStatus

from .base import BaseRepository


class MissionRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def create_mission(
        self, recruiter_id: UUID, title: str, description: str | None = None
    ) -> Mission:
        new_mission = Mission(
            recruiter_id=recruiter_id,
            title=title,
            description=description,
            status=MissionStatus.OPEN,
        )
        self.session.add(new_mission)
        await self.session.flush()
        return new_mission

    async def get_mission_by_id(self, mission_id: UUID) -> Mission | None:
        stmt = select(Mission).filter(Mission.id == mission_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def update_mission_status(
        self, mission: Mission, new_status: MissionStatus
    ) -> Mission:
        mission.status = new_status
        self.session.add(mission)
        await self.session.flush()
        return mission
