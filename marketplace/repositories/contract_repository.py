from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.models import Contract
from marketplace.schemas.contract import ContractStatus

from .base import BaseRepository


class ContractRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def create_contract(self, **fields: Any) -> Contract:
        """Creates a contract in the sent_to_talent state."""
        new_contract = Contract(status=ContractStatus.SENT_TO_TALENT, **fields)
        self.session.add(new_contract)
        await self.session.flush()
        return new_contract

    async def get_contract_by_id(self, contract_id: UUID) -> Contract | None:
        stmt = select(Contract).filter(Contract.id == contract_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_contracts_between(
        self,
        recruiter_id: UUID,
        talent_id: UUID,
        mission_id: UUID | None = None,
    ) -> Sequence[Contract]:
        """Lists contracts between two parties, optionally for one mission, newest first."""
        stmt = select(Contract).filter(
            Contract.recruiter_id == recruiter_id,
            Contract.talent_id == talent_id,
        )
        if mission_id is not None:
            stmt = stmt.filter(Contract.mission_id == mission_id)
        stmt = stmt.order_by(Contract.created_at.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def save(self, contract: Contract) -> Contract:
        self.session.add(contract)
        await self.session.flush()
        return contract
