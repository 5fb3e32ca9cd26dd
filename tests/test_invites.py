import asyncio
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select, update

from app.core.exceptions import (
    NotFoundException, ForbiddenException, ValidationException, DuplicateResourceException,
    InviteQuotaExceededException, InviteExpiredException, InviteInactiveException
)
from app.models import InviteToken, User, UserRole
from app.services.invite_service import InviteService
from app.utils.helpers import utcnow
from tests.conftest import actor_of


async def expire(db, invite_id):
    await db.execute(
        update(InviteToken)
        .where(InviteToken.id == invite_id)
        .values(expires_at=utcnow() - timedelta(minutes=1))
    )
    await db.commit()


@pytest.mark.asyncio
async def test_create_invite_defaults(db, world):
    invite = await InviteService(db).create_invite(actor_of(world.admin), team_id=world.sales.id)

    assert invite.usage_limit == 1
    assert invite.usage_count == 0
    assert invite.is_active is True
    assert invite.expires_at is None
    assert invite.company_id == world.acme.id
    assert len(invite.token) >= 24


@pytest.mark.asyncio
async def test_create_invite_checks(db, world):
    service = InviteService(db)

    with pytest.raises(ForbiddenException):
        await service.create_invite(actor_of(world.rop))
    with pytest.raises(NotFoundException):
        await service.create_invite(actor_of(world.other_admin), team_id=world.sales.id)
    with pytest.raises(ValidationException):
        await service.create_invite(actor_of(world.admin), usage_limit=0)


@pytest.mark.asyncio
async def test_multi_use_token_deactivates_at_limit(db, world):
    service = InviteService(db)
    invite = await service.create_invite(actor_of(world.admin), usage_limit=2)
    token = invite.token

    first = await service.consume(token, uuid.uuid4())
    await db.commit()
    assert first.usage_count == 1
    assert first.is_active is True

    user_id = uuid.uuid4()
    second = await service.consume(token, user_id)
    await db.commit()
    assert second.usage_count == 2
    assert second.is_active is False
    assert second.last_used_by_id == user_id
    assert second.used_at is not None

    with pytest.raises(InviteQuotaExceededException):
        await service.consume(token, uuid.uuid4())


@pytest.mark.asyncio
async def test_validate_reports_reason(db, world):
    service = InviteService(db)
    invite = await service.create_invite(actor_of(world.admin), team_id=world.sales.id)
    token, invite_id = invite.token, invite.id

    result = await service.validate(token)
    assert result == {
        "valid": True,
        "team_id": world.sales.id,
        "company_id": world.acme.id,
        "reason": None,
    }

    await service.deactivate(invite_id, actor_of(world.admin))
    assert (await service.validate(token))["reason"] == "inactive"

    missing = await service.validate("no-such-token")
    assert missing["valid"] is False
    assert missing["reason"] == "not_found"


@pytest.mark.asyncio
async def test_consume_diagnoses_failures(db, world):
    service = InviteService(db)
    admin = actor_of(world.admin)

    with pytest.raises(NotFoundException):
        await service.consume("no-such-token", uuid.uuid4())

    expired = await service.create_invite(admin, usage_limit=5)
    expired_token, expired_id = expired.token, expired.id
    await expire(db, expired_id)
    with pytest.raises(InviteExpiredException):
        await service.consume(expired_token, uuid.uuid4())
    assert (await service.validate(expired_token))["reason"] == "expired"

    inactive = await service.create_invite(admin, usage_limit=5)
    inactive_token, inactive_id = inactive.token, inactive.id
    await service.deactivate(inactive_id, admin)
    with pytest.raises(InviteInactiveException):
        await service.consume(inactive_token, uuid.uuid4())

    unchanged = await db.scalar(
        select(InviteToken.usage_count).where(InviteToken.id == inactive_id)
    )
    assert unchanged == 0


@pytest.mark.asyncio
async def test_deactivate_is_idempotent(db, world):
    service = InviteService(db)
    invite = await service.create_invite(actor_of(world.admin))
    invite_id = invite.id

    first = await service.deactivate(invite_id, actor_of(world.admin))
    second = await service.deactivate(invite_id, actor_of(world.admin))
    assert first.is_active is False
    assert second.is_active is False

    with pytest.raises(NotFoundException):
        await service.deactivate(invite_id, actor_of(world.other_admin))


@pytest.mark.asyncio
async def test_concurrent_consumption_respects_quota(session_maker, db, world):
    invite = await InviteService(db).create_invite(actor_of(world.admin), usage_limit=1)
    token, invite_id = invite.token, invite.id

    async def consume():
        async with session_maker() as session:
            consumed = await InviteService(session).consume(token, uuid.uuid4())
            await session.commit()
            return consumed.usage_count

    results = await asyncio.gather(consume(), consume(), return_exceptions=True)

    assert sorted(r for r in results if not isinstance(r, Exception)) == [1]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], InviteQuotaExceededException)

    async with session_maker() as session:
        final = await session.get(InviteToken, invite_id)
        assert final.usage_count == 1
        assert final.is_active is False


@pytest.mark.asyncio
async def test_register_with_invite_creates_manager(db, world):
    service = InviteService(db)
    invite = await service.create_invite(actor_of(world.admin), team_id=world.sales.id)

    user = await service.register_with_invite(invite.token, "newbie", "pass123", "New Person")

    assert user.role == UserRole.MANAGER
    assert user.company_id == world.acme.id
    assert user.team_id == world.sales.id

    consumed = await db.scalar(
        select(InviteToken)
        .where(InviteToken.id == invite.id)
        .execution_options(populate_existing=True)
    )
    assert consumed.usage_count == 1
    assert consumed.last_used_by_id == user.id
    assert consumed.is_active is False


@pytest.mark.asyncio
async def test_register_failures_leave_nothing_behind(db, world):
    service = InviteService(db)
    admin = actor_of(world.admin)
    invite = await service.create_invite(admin, usage_limit=3)
    token, invite_id = invite.token, invite.id

    with pytest.raises(DuplicateResourceException):
        await service.register_with_invite(token, "manager", "pass123", "Copycat")

    spent = await service.create_invite(admin)
    spent_token, spent_id = spent.token, spent.id
    await service.deactivate(spent_id, admin)
    with pytest.raises(InviteInactiveException):
        await service.register_with_invite(spent_token, "ghost", "pass123", "Ghost")

    assert await db.scalar(select(User.id).where(User.username == "ghost")) is None
    count = await db.scalar(select(InviteToken.usage_count).where(InviteToken.id == invite_id))
    assert count == 0
