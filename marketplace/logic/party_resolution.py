"""Role-conditional selection of conversation parties. No database access here."""

from uuid import UUID

from marketplace.models import Conversation
from marketplace.schemas.roles import UserRole
from marketplace.services.exceptions import InvalidInputError


def coerce_role(role: UserRole | str) -> UserRole:
    """Returns role as a UserRole, raising InvalidInputError for anything else."""
    try:
        return UserRole(role)
    except ValueError:
        raise InvalidInputError(f"Invalid user role '{role}'.")


def resolve_parties(
    role: UserRole | str,
    user_id: UUID,
    *,
    recruiter_id: UUID | None = None,
    talent_id: UUID | None = None,
) -> tuple[UUID, UUID]:
    """Maps the caller and the counterpart hint to (recruiter_id, talent_id).

    A recruiter names the talent, a talent names the recruiter. The hint for
    the caller's own side is ignored.
    """
    role = coerce_role(role)
    if role == UserRole.RECRUITER:
        if not talent_id:
            raise InvalidInputError("Talent ID is required")
        return user_id, talent_id

    if not recruiter_id:
        raise InvalidInputError("Recruiter ID is required")
    return recruiter_id, user_id


def is_party(conversation: Conversation, user_id: UUID, role: UserRole | str) -> bool:
    """True when user_id is the conversation's recorded party for its role."""
    role = coerce_role(role)
    if role == UserRole.RECRUITER:
        return conversation.recruiter_id == user_id
    return conversation.talent_id == user_id


def role_in(conversation: Conversation, user_id: UUID) -> UserRole:
    """Infers a user's side from the stored recruiter id."""
    if conversation.recruiter_id == user_id:
        return UserRole.RECRUITER
    return UserRole.TALENT


def counterpart_of(conversation: Conversation, role: UserRole | str) -> UUID:
    """The id of the party on the other side from role."""
    if coerce_role(role) == UserRole.RECRUITER:
        return conversation.talent_id
    return conversation.recruiter_id
