import logging
import uuid
from typing import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from marketplace.core.config import settings
from marketplace.core.templating import text_templates
from marketplace.logic.party_resolution import coerce_role
from marketplace.models import Contract, User
from marketplace.repositories.contract_repository import ContractRepository
from marketplace.repositories.user_repository import UserRepository
from marketplace.schemas.contract import (
    ContractCreateRequest,
    ContractStatus,
)
from marketplace.schemas.mission import MissionStatus
from marketplace.schemas.roles import UserRole

from .conversation_service import ConversationService
from .exceptions import (
    BusinessRuleError,
    ContractNotFoundError,
    ContractValidationError,
    DatabaseError,
    NotAuthorizedError,
    ServiceError,
    UserNotFoundError,
)
from .mission_service import MissionService

logger = logging.getLogger(__name__)

CONTRACT_DECLINED_TEXT = "Contract declined"

# field name -> message reported when it is blank
REQUIRED_CONTRACT_FIELDS = {
    "title": "Contract title is required",
    "recruiter_signature": "Recruiter signature is required",
    "scope": "Project scope is required",
    "budget": "Budget is required",
    "start_date": "Start date is required",
    "end_date": "End date is required",
}


def document_url(contract_id: UUID, version: str = "sent") -> str:
    url = f"{settings.PUBLIC_BASE_URL}/contracts/{contract_id}/document"
    if version != "sent":
        url += f"?version={version}"
    return url


def _is_blank(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class ContractService:
    def __init__(
        self,
        contract_repository: ContractRepository,
        mission_service: MissionService,
        user_repository: UserRepository,
        conversation_service: ConversationService,
    ):
        self.contract_repo = contract_repository
        self.mission_service = mission_service
        self.user_repo = user_repository
        self.conversation_service = conversation_service
        self.session = contract_repository.session

    async def create(
        self, recruiter_id: UUID, payload: ContractCreateRequest
    ) -> Contract:
        """
        Sends a new contract to a talent.

        The contract body is rendered from the mission and both parties'
        names, then announced in the recruiter/talent conversation (created
        on first contact) as a contract message.
        """
        self._validate_fields(
            {name: getattr(payload, name) for name in REQUIRED_CONTRACT_FIELDS}
        )
        if payload.end_date < payload.start_date:
            raise ContractValidationError(
                ["end_date"], {"end_date": "End date must not be before start date"}
            )

        mission = await self.mission_service.get_mission(payload.mission_id)
        if mission.recruiter_id != recruiter_id:
            raise NotAuthorizedError("Mission does not belong to recruiter")

        recruiter = await self._get_party(recruiter_id, UserRole.RECRUITER)
        talent = await self._get_party(payload.talent_id, UserRole.TALENT)

        content = text_templates.get_template("contracts/content.txt").render(
            recruiter_name=recruiter.full_name or recruiter.email,
            talent_name=talent.full_name or talent.email,
            mission_title=mission.title,
            scope=payload.scope,
            start_date=payload.start_date,
            end_date=payload.end_date,
            budget=payload.budget,
        )

        contract_id = uuid.uuid4()
        pdf_url = document_url(contract_id)
        try:
            contract = await self.contract_repo.create_contract(
                id=contract_id,
                mission_id=mission.id,
                recruiter_id=recruiter_id,
                talent_id=talent.id,
                title=payload.title.strip(),
                content=content,
                scope=payload.scope,
                budget=payload.budget,
                payment_details=payload.payment_details or payload.budget,
                start_date=payload.start_date,
                end_date=payload.end_date,
                recruiter_signature=payload.recruiter_signature,
                pdf_url=pdf_url,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Database error creating contract: {e}", exc_info=True)
            raise DatabaseError("Failed to create contract due to a database error.")

        logger.info(
            f"Contract {contract_id} sent by recruiter {recruiter_id} "
            f"to talent {payload.talent_id}"
        )

        conversation = await self.conversation_service.find_or_create(
            recruiter_id,
            UserRole.RECRUITER,
            mission_id=payload.mission_id,
            talent_id=payload.talent_id,
        )
        await self.conversation_service.send_contract_message(
            conversation.id, contract_id, pdf_url, recruiter_id, is_signed=False
        )

        await self.session.refresh(contract)
        return contract

    async def sign(
        self, contract_id: UUID, talent_id: UUID, talent_signature: str
    ) -> Contract:
        """
        Countersigns a contract on behalf of its talent and starts the mission.

        Signing an already signed contract does not change it but still
        posts the signed notice.
        """
        contract = await self._get_contract(contract_id)
        if contract.talent_id != talent_id:
            raise NotAuthorizedError("Contract does not belong to talent")

        self._validate_fields(
            {
                "title": contract.title,
                "content": contract.content,
                "recruiter_signature": contract.recruiter_signature,
            }
        )

        if contract.status == ContractStatus.SENT_TO_TALENT:
            if _is_blank(talent_signature):
                raise ContractValidationError(
                    ["talent_signature"],
                    {
                        "talent_signature": "Talent signature is required to sign the contract"
                    },
                )
            contract.talent_signature = talent_signature
            contract.status = ContractStatus.SIGNED_BY_BOTH
            contract.signed_pdf_url = document_url(contract_id, "signed")
            try:
                await self.mission_service.update_status(
                    contract.mission_id, MissionStatus.STARTED, contract.recruiter_id
                )
                await self.contract_repo.save(contract)
                await self.session.commit()
            except ServiceError:
                await self.session.rollback()
                raise
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error(
                    f"Database error signing contract {contract_id}: {e}", exc_info=True
                )
                raise DatabaseError("Failed to sign contract due to a database error.")
            logger.info(f"Contract {contract_id} signed by talent {talent_id}")
        elif contract.status != ContractStatus.SIGNED_BY_BOTH:
            raise BusinessRuleError("Contract cannot be signed in current status")

        recruiter_id = contract.recruiter_id
        mission_id = contract.mission_id
        notice_url = contract.signed_pdf_url or contract.pdf_url
        is_signed = contract.status == ContractStatus.SIGNED_BY_BOTH

        conversation = await self.conversation_service.find_or_create(
            talent_id,
            UserRole.TALENT,
            mission_id=mission_id,
            recruiter_id=recruiter_id,
        )
        await self.conversation_service.send_contract_message(
            conversation.id, contract_id, notice_url, talent_id, is_signed=is_signed
        )

        await self.session.refresh(contract)
        return contract

    async def decline(self, contract_id: UUID, talent_id: UUID) -> Contract:
        contract = await self._get_contract(contract_id)
        if contract.talent_id != talent_id:
            raise NotAuthorizedError("Contract does not belong to talent")
        if contract.status != ContractStatus.SENT_TO_TALENT:
            raise BusinessRuleError("Contract cannot be declined in current status")

        contract.status = ContractStatus.DECLINED_BY_TALENT
        try:
            await self.contract_repo.save(contract)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Database error declining contract {contract_id}: {e}", exc_info=True
            )
            raise DatabaseError("Failed to decline contract due to a database error.")

        logger.info(f"Contract {contract_id} declined by talent {talent_id}")

        conversation = await self.conversation_service.find_or_create(
            talent_id,
            UserRole.TALENT,
            mission_id=contract.mission_id,
            recruiter_id=contract.recruiter_id,
        )
        await self.conversation_service.send_message(
            conversation.id, talent_id, UserRole.TALENT, CONTRACT_DECLINED_TEXT
        )

        await self.session.refresh(contract)
        return contract

    async def find_one(
        self, contract_id: UUID, user_id: UUID, role: UserRole | str
    ) -> Contract:
        """Fetches a contract the caller is a party to."""
        contract = await self._get_contract(contract_id)
        owner_id = (
            contract.recruiter_id
            if coerce_role(role) == UserRole.RECRUITER
            else contract.talent_id
        )
        if owner_id != user_id:
            raise NotAuthorizedError(
                "You do not have permission to access this contract"
            )
        return contract

    async def find_by_conversation(
        self, conversation_id: UUID, user_id: UUID, role: UserRole | str
    ) -> Sequence[Contract]:
        """Contracts between the conversation's parties, for its mission when set."""
        conversation = await self.conversation_service.find_one(
            conversation_id, user_id, role
        )
        return await self.contract_repo.list_contracts_between(
            conversation.recruiter_id,
            conversation.talent_id,
            mission_id=conversation.mission_id,
        )

    async def get_document_context(
        self, contract_id: UUID, user_id: UUID, role: UserRole | str, version: str
    ) -> dict:
        """Template context for the contract document.

        The "sent" version omits the talent signature even after signing.
        """
        contract = await self.find_one(contract_id, user_id, role)
        recruiter = await self.user_repo.get_user_by_id(contract.recruiter_id)
        talent = await self.user_repo.get_user_by_id(contract.talent_id)
        return {
            "contract": contract,
            "recruiter_name": recruiter.full_name if recruiter else None,
            "talent_name": talent.full_name if talent else None,
            "show_talent_signature": version == "signed",
        }

    async def _get_contract(self, contract_id: UUID) -> Contract:
        contract = await self.contract_repo.get_contract_by_id(contract_id)
        if not contract:
            raise ContractNotFoundError(f"Contract {contract_id} not found")
        return contract

    async def _get_party(self, user_id: UUID, role: UserRole) -> User:
        user = await self.user_repo.get_user_by_id(user_id)
        if not user or user.role != role:
            raise UserNotFoundError(f"{role.value.capitalize()} {user_id} not found")
        return user

    @staticmethod
    def _validate_fields(values: dict) -> None:
        missing = [name for name, value in values.items() if _is_blank(value)]
        if missing:
            raise ContractValidationError(
                missing,
                {
                    name: REQUIRED_CONTRACT_FIELDS.get(name, f"{name} is required")
                    for name in missing
                },
            )
