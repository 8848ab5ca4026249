import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.models import Conversation, Message, User
from marketplace.schemas.roles import UserRole
from marketplace.services.conversation_service import (
    CONTRACT_SENT_TEXT,
    CONTRACT_SIGNED_TEXT,
    CONTRACT_TALENT_SIGNED_TEXT,
    CREATE_ATTEMPTS,
    ConversationService,
)
from marketplace.services.exceptions import (
    ConflictError,
    ConversationNotFoundError,
    DatabaseError,
    InvalidInputError,
    NotAuthorizedError,
)
from test_helpers import create_test_user

pytestmark = pytest.mark.asyncio


async def _count_conversations(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Conversation.id)))
    return result.scalar_one()


async def test_find_or_create_is_idempotent_from_both_sides(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    recruiter: User,
    talent: User,
):
    first = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    second = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    third = await conversation_service.find_or_create(
        talent.id, UserRole.TALENT, recruiter_id=recruiter.id
    )

    assert first.id == second.id == third.id
    assert first.deleted_by == []
    assert first.talent_name == "Theo Talent"
    assert first.recruiter_profile_image == "https://img.example.com/rita.png"
    assert await _count_conversations(db_session) == 1


async def test_find_or_create_overwrites_mission(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    mission_a, mission_b = uuid.uuid4(), uuid.uuid4()
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id, mission_id=mission_a
    )
    assert conversation.mission_id == mission_a

    again = await conversation_service.find_or_create(
        talent.id, UserRole.TALENT, recruiter_id=recruiter.id
    )
    assert again.mission_id == mission_a

    again = await conversation_service.find_or_create(
        talent.id, UserRole.TALENT, recruiter_id=recruiter.id, mission_id=mission_b
    )
    assert again.id == conversation.id
    assert again.mission_id == mission_b


async def test_find_or_create_requires_counterpart(
    conversation_service: ConversationService, recruiter: User
):
    with pytest.raises(InvalidInputError, match="Talent ID is required"):
        await conversation_service.find_or_create(recruiter.id, UserRole.RECRUITER)


async def test_lost_insert_race_returns_existing_record(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    """A concurrent winner's row makes the insert fail; the winner is used."""
    winner = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    winner_id = winner.id

    repo = conversation_service.conv_repo
    real_lookup = repo.get_conversation_by_pair
    calls = []

    async def lookup_misses_first_time(recruiter_id, talent_id):
        calls.append((recruiter_id, talent_id))
        if len(calls) == 1:
            return None
        return await real_lookup(recruiter_id, talent_id)

    monkeypatch.setattr(repo, "get_conversation_by_pair", lookup_misses_first_time)

    mission_id = uuid.uuid4()
    result = await conversation_service.find_or_create(
        talent.id, UserRole.TALENT, recruiter_id=recruiter.id, mission_id=mission_id
    )

    assert len(calls) == 2
    assert result.id == winner_id
    assert result.mission_id == mission_id
    assert await _count_conversations(db_session) == 1


async def test_integrity_error_without_winner_is_conflict(
    conversation_service: ConversationService,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    repo = conversation_service.conv_repo

    async def no_conversation(recruiter_id, talent_id):
        return None

    async def failing_insert(*args, **kwargs):
        raise IntegrityError("INSERT", {}, Exception("constraint failed"))

    monkeypatch.setattr(repo, "get_conversation_by_pair", no_conversation)
    monkeypatch.setattr(repo, "create_conversation", failing_insert)

    with pytest.raises(ConflictError):
        await conversation_service.find_or_create(
            recruiter.id, UserRole.RECRUITER, talent_id=talent.id
        )


async def test_locked_insert_is_retried(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    repo = conversation_service.conv_repo
    real_insert = repo.create_conversation
    attempts = []

    async def insert_locked_once(*args, **kwargs):
        attempts.append(args)
        if len(attempts) == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return await real_insert(*args, **kwargs)

    monkeypatch.setattr(repo, "create_conversation", insert_locked_once)

    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )

    assert len(attempts) == 2
    assert conversation.talent_id == talent.id
    assert await _count_conversations(db_session) == 1


async def test_lock_held_by_winner_returns_its_record(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    winner = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    winner_id = winner.id

    repo = conversation_service.conv_repo
    real_lookup = repo.get_conversation_by_pair
    lookups = []

    async def lookup_misses_first_time(recruiter_id, talent_id):
        lookups.append((recruiter_id, talent_id))
        if len(lookups) == 1:
            return None
        return await real_lookup(recruiter_id, talent_id)

    async def locked_insert(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(repo, "get_conversation_by_pair", lookup_misses_first_time)
    monkeypatch.setattr(repo, "create_conversation", locked_insert)

    result = await conversation_service.find_or_create(
        talent.id, UserRole.TALENT, recruiter_id=recruiter.id
    )

    assert len(lookups) == 2
    assert result.id == winner_id
    assert await _count_conversations(db_session) == 1


async def test_lock_that_never_clears_is_database_error(
    conversation_service: ConversationService,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    repo = conversation_service.conv_repo
    attempts = []

    async def locked_insert(*args, **kwargs):
        attempts.append(args)
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(repo, "create_conversation", locked_insert)

    with pytest.raises(DatabaseError):
        await conversation_service.find_or_create(
            recruiter.id, UserRole.RECRUITER, talent_id=talent.id
        )
    assert len(attempts) == CREATE_ATTEMPTS


async def test_other_operational_errors_are_not_retried(
    conversation_service: ConversationService,
    monkeypatch,
    recruiter: User,
    talent: User,
):
    repo = conversation_service.conv_repo
    attempts = []

    async def broken_insert(*args, **kwargs):
        attempts.append(args)
        raise OperationalError("INSERT", {}, Exception("no such table: conversations"))

    monkeypatch.setattr(repo, "create_conversation", broken_insert)

    with pytest.raises(DatabaseError):
        await conversation_service.find_or_create(
            recruiter.id, UserRole.RECRUITER, talent_id=talent.id
        )
    assert len(attempts) == 1


async def test_find_one_authorization(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )

    with pytest.raises(NotAuthorizedError):
        await conversation_service.find_one(
            conversation.id, uuid.uuid4(), UserRole.RECRUITER
        )
    # the recruiter claiming the talent side is not a party either
    with pytest.raises(NotAuthorizedError):
        await conversation_service.find_one(
            conversation.id, recruiter.id, UserRole.TALENT
        )

    missing_id = uuid.uuid4()
    with pytest.raises(ConversationNotFoundError) as exc_info:
        await conversation_service.find_one(missing_id, recruiter.id, UserRole.RECRUITER)
    assert exc_info.value.message == f"Conversation {missing_id} not found"


async def test_messages_are_ordered_and_addressed_to_other_party(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    texts = ["one", "two", "three"]
    for index, text in enumerate(texts):
        if index % 2:
            await conversation_service.send_message(
                conversation.id, talent.id, UserRole.TALENT, text
            )
        else:
            await conversation_service.send_message(
                conversation.id, recruiter.id, UserRole.RECRUITER, text
            )

    messages = await conversation_service.get_messages(
        conversation.id, talent.id, UserRole.TALENT
    )
    assert [m.text for m in messages] == texts
    created = [m.created_at for m in messages]
    assert created == sorted(created)
    assert messages[0].receiver_id == talent.id
    assert messages[1].receiver_id == recruiter.id
    assert all(not m.is_read for m in messages)

    refreshed = await conversation_service.find_one(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert refreshed.last_message_text == "three"


async def test_send_message_rejects_empty_text(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    with pytest.raises(InvalidInputError):
        await conversation_service.send_message(
            conversation.id, recruiter.id, UserRole.RECRUITER, ""
        )


async def test_mark_as_read_only_touches_messages_to_caller(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    recruiter: User,
    talent: User,
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    await conversation_service.send_message(
        conversation.id, talent.id, UserRole.TALENT, "Hello"
    )
    await conversation_service.send_message(
        conversation.id, talent.id, UserRole.TALENT, "Are you there?"
    )
    await conversation_service.send_message(
        conversation.id, recruiter.id, UserRole.RECRUITER, "Yes"
    )

    assert await conversation_service.get_unread_count(recruiter.id) == 2
    assert await conversation_service.get_unread_count(talent.id) == 1

    count = await conversation_service.mark_conversation_as_read(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert count == 2

    result = await db_session.execute(
        select(Message)
        .filter(Message.conversation_id == conversation.id)
        .execution_options(populate_existing=True)
    )
    for message in result.scalars().all():
        if message.receiver_id == recruiter.id:
            assert message.is_read
            assert message.seen_at is not None
        else:
            assert not message.is_read
            assert message.seen_at is None

    assert await conversation_service.get_unread_count(recruiter.id) == 0
    assert (
        await conversation_service.get_conversation_unread_count(
            conversation.id, talent.id, UserRole.TALENT
        )
        == 1
    )
    # nothing left to mark
    assert (
        await conversation_service.mark_conversation_as_read(
            conversation.id, recruiter.id, UserRole.RECRUITER
        )
        == 0
    )


async def test_conversations_with_unread_counts_distinct_conversations(
    conversation_service: ConversationService,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    recruiter: User,
    talent: User,
):
    other_talent = await create_test_user(
        db_test_session_manager,
        email="other.talent@example.com",
        full_name="Olga Other",
        role=UserRole.TALENT,
    )
    first = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    second = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=other_talent.id
    )
    for text in ("a", "b"):
        await conversation_service.send_message(
            first.id, talent.id, UserRole.TALENT, text
        )
    await conversation_service.send_message(
        second.id, other_talent.id, UserRole.TALENT, "c"
    )

    assert await conversation_service.get_unread_count(recruiter.id) == 3
    assert (
        await conversation_service.get_conversations_with_unread_count(recruiter.id)
        == 2
    )


async def test_delete_is_per_user_and_idempotent(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )

    deleted = await conversation_service.delete_conversation(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert deleted.deleted_by == [recruiter.id]

    again = await conversation_service.delete_conversation(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert again.deleted_by == [recruiter.id]

    assert await conversation_service.find_all(recruiter.id, UserRole.RECRUITER) == []
    talent_view = await conversation_service.find_all(talent.id, UserRole.TALENT)
    assert [c.id for c in talent_view] == [conversation.id]

    # the other party keeps full use of the thread
    message = await conversation_service.send_message(
        conversation.id, talent.id, UserRole.TALENT, "Still here"
    )
    assert message.receiver_id == recruiter.id


async def test_find_all_orders_by_latest_activity(
    conversation_service: ConversationService,
    db_test_session_manager: async_sessionmaker[AsyncSession],
    recruiter: User,
    talent: User,
):
    other_talent = await create_test_user(
        db_test_session_manager,
        email="second.talent@example.com",
        full_name="Sam Second",
        role=UserRole.TALENT,
    )
    quiet = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    older = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=other_talent.id
    )
    await conversation_service.send_message(
        older.id, recruiter.id, UserRole.RECRUITER, "first"
    )
    await conversation_service.send_message(
        quiet.id, recruiter.id, UserRole.RECRUITER, "second"
    )

    listed = await conversation_service.find_all(recruiter.id, UserRole.RECRUITER)
    assert [c.id for c in listed] == [quiet.id, older.id]

    # a talent only sees their own side
    talent_list = await conversation_service.find_all(talent.id, UserRole.TALENT)
    assert [c.id for c in talent_list] == [quiet.id]


async def test_find_all_falls_back_to_update_time_for_quiet_threads(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    recruiter: User,
):
    oldest_empty = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=uuid.uuid4()
    )
    messaged = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=uuid.uuid4()
    )
    newest_empty = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=uuid.uuid4()
    )
    await conversation_service.send_message(
        messaged.id, recruiter.id, UserRole.RECRUITER, "hello"
    )

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, conversation in enumerate([oldest_empty, messaged, newest_empty]):
        await db_session.execute(
            update(Conversation)
            .where(Conversation.id == conversation.id)
            .values(updated_at=base + timedelta(hours=offset))
        )
    await db_session.commit()

    listed = await conversation_service.find_all(recruiter.id, UserRole.RECRUITER)
    assert [c.id for c in listed] == [messaged.id, newest_empty.id, oldest_empty.id]


async def test_display_fields_are_filled_when_missing(
    conversation_service: ConversationService,
    db_session: AsyncSession,
    recruiter: User,
    talent: User,
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    conversation.talent_name = None
    conversation.talent_profile_image = None
    await db_session.commit()

    fetched = await conversation_service.find_one(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert fetched.talent_name == "Theo Talent"
    assert fetched.talent_profile_image == "https://img.example.com/theo.png"


async def test_unknown_party_leaves_display_fields_empty(
    conversation_service: ConversationService, recruiter: User
):
    ghost_talent = uuid.uuid4()
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=ghost_talent
    )
    assert conversation.talent_name is None

    fetched = await conversation_service.find_one(
        conversation.id, recruiter.id, UserRole.RECRUITER
    )
    assert fetched.talent_name is None
    assert fetched.recruiter_name == "Rita Recruiter"


@pytest.mark.parametrize(
    "sender, is_signed, expected",
    [
        ("recruiter", False, CONTRACT_SENT_TEXT),
        ("talent", False, CONTRACT_TALENT_SIGNED_TEXT),
        ("talent", True, CONTRACT_SIGNED_TEXT),
        ("recruiter", True, CONTRACT_SIGNED_TEXT),
    ],
)
async def test_contract_message_text(
    conversation_service: ConversationService,
    recruiter: User,
    talent: User,
    sender,
    is_signed,
    expected,
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    sender_user = recruiter if sender == "recruiter" else talent
    receiver_user = talent if sender == "recruiter" else recruiter
    contract_id = uuid.uuid4()

    message = await conversation_service.send_contract_message(
        conversation.id,
        contract_id,
        "http://test/contracts/x/document",
        sender_user.id,
        is_signed=is_signed,
    )

    assert message.text == expected
    assert message.is_contract_message
    assert message.contract_id == contract_id
    assert message.receiver_id == receiver_user.id


async def test_contract_message_requires_party(
    conversation_service: ConversationService, recruiter: User, talent: User
):
    conversation = await conversation_service.find_or_create(
        recruiter.id, UserRole.RECRUITER, talent_id=talent.id
    )
    with pytest.raises(NotAuthorizedError):
        await conversation_service.send_contract_message(
            conversation.id, uuid.uuid4(), "http://test/doc", uuid.uuid4()
        )
    with pytest.raises(ConversationNotFoundError):
        await conversation_service.send_contract_message(
            uuid.uuid4(), uuid.uuid4(), "http://test/doc", recruiter.id
        )
