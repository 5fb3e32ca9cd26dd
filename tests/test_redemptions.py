import asyncio
import uuid

import pytest

from app.core.exceptions import (
    NotFoundException, ForbiddenException, InsufficientFundsException, InvalidStateException
)
from app.models import RedemptionStatus, TransactionType, TransactionStatus
from app.services.balance import BalanceService
from app.services.ledger import LedgerStore
from app.api.v1.shop.services import ShopService
from app.services.redemption_service import RedemptionService, REDEMPTION_REF
from tests.conftest import actor_of, credit


@pytest.mark.asyncio
async def test_redemption_debits_at_once_and_reject_refunds(db, world):
    await credit(db, world.manager, 150)
    service = RedemptionService(db)
    balance = BalanceService(db)

    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id, "blue please")
    assert redemption.status == RedemptionStatus.PENDING
    assert redemption.price_coins_snapshot == 150
    assert await balance.get_balance(world.manager.id) == 0

    entries = await LedgerStore(db).list_for_reference(REDEMPTION_REF, redemption.id)
    assert [(e.type, e.amount, e.status) for e in entries] == [
        (TransactionType.SPEND, -150, TransactionStatus.APPROVED)
    ]

    rejected = await service.update_status(redemption.id, RedemptionStatus.REJECTED, actor_of(world.admin))
    assert rejected.status == RedemptionStatus.REJECTED
    assert await balance.get_balance(world.manager.id) == 150

    entries = await LedgerStore(db).list_for_reference(REDEMPTION_REF, redemption.id)
    assert sorted(e.amount for e in entries) == [-150, 150]


@pytest.mark.asyncio
async def test_second_reject_is_invalid_and_does_not_refund_twice(db, world):
    await credit(db, world.manager, 200)
    service = RedemptionService(db)
    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id)
    redemption_id = redemption.id

    await service.reject(redemption_id, actor_of(world.admin))
    with pytest.raises(InvalidStateException):
        await service.reject(redemption_id, actor_of(world.admin))

    entries = await LedgerStore(db).list_for_reference(REDEMPTION_REF, redemption_id)
    refunds = [e for e in entries if e.type == TransactionType.EARN]
    assert len(refunds) == 1
    assert await BalanceService(db).get_balance(world.manager.id) == 200


@pytest.mark.asyncio
async def test_insufficient_funds_leaves_no_trace(db, world):
    await credit(db, world.manager, 149)
    service = RedemptionService(db)

    with pytest.raises(InsufficientFundsException) as exc_info:
        await service.create_redemption(actor_of(world.manager), world.mug.id)
    assert exc_info.value.error_code == "INSUFFICIENT_FUNDS"
    assert exc_info.value.available == 149

    assert await service.list_redemptions(actor_of(world.manager), scope="my") == []
    assert await BalanceService(db).get_balance(world.manager.id) == 149


@pytest.mark.asyncio
async def test_only_one_of_two_sequential_redemptions_fits_the_balance(db, world):
    await credit(db, world.manager, 200)
    service = RedemptionService(db)

    await service.create_redemption(actor_of(world.manager), world.mug.id)
    with pytest.raises(InsufficientFundsException):
        await service.create_redemption(actor_of(world.manager), world.mug.id)

    assert await BalanceService(db).get_balance(world.manager.id) == 50


@pytest.mark.asyncio
async def test_concurrent_redemptions_cannot_double_spend(session_maker, db, world):
    await credit(db, world.manager, 200)
    actor = actor_of(world.manager)

    async def redeem():
        async with session_maker() as session:
            return await RedemptionService(session).create_redemption(actor, world.mug.id)

    results = await asyncio.gather(redeem(), redeem(), return_exceptions=True)

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], InsufficientFundsException)
    assert await BalanceService(db).get_balance(world.manager.id) == 50


@pytest.mark.asyncio
async def test_unknown_inactive_and_foreign_items_are_not_found(db, world):
    await credit(db, world.manager, 1000)
    service = RedemptionService(db)
    actor = actor_of(world.manager)

    for item_id in (uuid.uuid4(), world.retired.id, world.foreign.id):
        with pytest.raises(NotFoundException):
            await service.create_redemption(actor, item_id)


@pytest.mark.asyncio
async def test_approve_then_issue_stamps_reviewers(db, world):
    await credit(db, world.manager, 150)
    service = RedemptionService(db)
    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id)

    approved = await service.update_status(redemption.id, RedemptionStatus.APPROVED, actor_of(world.rop))
    assert approved.status == RedemptionStatus.APPROVED
    assert approved.approved_by_id == world.rop.id
    assert approved.approved_at is not None

    issued = await service.update_status(redemption.id, RedemptionStatus.ISSUED, actor_of(world.admin))
    assert issued.status == RedemptionStatus.ISSUED
    assert issued.issued_by_id == world.admin.id
    assert issued.issued_at is not None

    # Issuing keeps the debit
    assert await BalanceService(db).get_balance(world.manager.id) == 0


@pytest.mark.asyncio
async def test_illegal_transitions_are_rejected(db, world):
    await credit(db, world.manager, 300)
    service = RedemptionService(db)
    admin = actor_of(world.admin)
    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id)
    redemption_id = redemption.id

    with pytest.raises(InvalidStateException):
        await service.update_status(redemption_id, RedemptionStatus.ISSUED, admin)
    with pytest.raises(InvalidStateException):
        await service.update_status(redemption_id, RedemptionStatus.PENDING, admin)

    await service.approve(redemption_id, admin)
    with pytest.raises(InvalidStateException):
        await service.reject(redemption_id, admin)

    await service.issue(redemption_id, admin)
    for status in (RedemptionStatus.APPROVED, RedemptionStatus.REJECTED, RedemptionStatus.ISSUED):
        with pytest.raises(InvalidStateException):
            await service.update_status(redemption_id, status, admin)

    # No refund was ever written
    assert await BalanceService(db).get_balance(world.manager.id) == 150


@pytest.mark.asyncio
async def test_review_permissions(db, world):
    await credit(db, world.outsider, 150)
    service = RedemptionService(db)
    redemption = await service.create_redemption(actor_of(world.outsider), world.mug.id)
    redemption_id = redemption.id

    # Managers cannot review
    with pytest.raises(ForbiddenException):
        await service.approve(redemption_id, actor_of(world.manager))
    # Team lead of another team
    with pytest.raises(ForbiddenException):
        await service.approve(redemption_id, actor_of(world.rop))
    # Admin of another company
    with pytest.raises(NotFoundException):
        await service.approve(redemption_id, actor_of(world.other_admin))

    approved = await service.approve(redemption_id, actor_of(world.admin))
    assert approved.status == RedemptionStatus.APPROVED


@pytest.mark.asyncio
async def test_list_scopes(db, world):
    await credit(db, world.manager, 150)
    await credit(db, world.outsider, 150)
    service = RedemptionService(db)
    mine = await service.create_redemption(actor_of(world.manager), world.mug.id)
    theirs = await service.create_redemption(actor_of(world.outsider), world.mug.id)

    own = await service.list_redemptions(actor_of(world.manager), scope="my")
    assert [r.id for r in own] == [mine.id]

    team = await service.list_redemptions(actor_of(world.rop), scope="team")
    assert [r.id for r in team] == [mine.id]

    everything = await service.list_redemptions(actor_of(world.admin), scope="all")
    assert {r.id for r in everything} == {mine.id, theirs.id}

    assert await service.list_redemptions(actor_of(world.other_admin), scope="all") == []

    with pytest.raises(ForbiddenException):
        await service.list_redemptions(actor_of(world.manager), scope="team")
    with pytest.raises(ForbiddenException):
        await service.list_redemptions(actor_of(world.rop), scope="all")


@pytest.mark.asyncio
async def test_refund_uses_price_snapshot_after_price_change(db, world):
    await credit(db, world.manager, 150)
    service = RedemptionService(db)
    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id)

    repriced = await ShopService(db).update_item(world.mug.id, actor_of(world.admin), price_coins=999)
    assert repriced.price_coins == 999

    rejected = await service.reject(redemption.id, actor_of(world.admin))
    assert rejected.price_coins_snapshot == 150

    entries = await LedgerStore(db).list_for_reference(REDEMPTION_REF, redemption.id)
    assert sorted((e.type, e.amount) for e in entries) == [
        (TransactionType.EARN, 150),
        (TransactionType.SPEND, -150),
    ]
    assert await BalanceService(db).get_balance(world.manager.id) == 150


@pytest.mark.asyncio
async def test_lost_review_race_reports_the_current_status(session_maker, db, world):
    await credit(db, world.manager, 150)
    service = RedemptionService(db)
    redemption = await service.create_redemption(actor_of(world.manager), world.mug.id)
    redemption_id = redemption.id

    async with session_maker() as other:
        await RedemptionService(other).reject(redemption_id, actor_of(world.admin))

    # This session still holds the row as PENDING
    with pytest.raises(InvalidStateException) as exc:
        await service.reject(redemption_id, actor_of(world.admin))
    assert exc.value.current == RedemptionStatus.REJECTED.value
    assert "from REJECTED to REJECTED" in exc.value.detail

    entries = await LedgerStore(db).list_for_reference(REDEMPTION_REF, redemption_id)
    assert len([e for e in entries if e.type == TransactionType.EARN]) == 1
