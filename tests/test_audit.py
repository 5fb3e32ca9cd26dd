import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import AuditLog, RedemptionStatus, TransactionType
from app.services.audit_service import AuditService
from app.services.redemption_service import RedemptionService
from app.services.transaction_service import TransactionService
from tests.conftest import actor_of, credit


@pytest.mark.asyncio
async def test_workflow_actions_are_recorded(db, world):
    await credit(db, world.manager, 150)
    redemption = await RedemptionService(db).create_redemption(actor_of(world.manager), world.mug.id)
    await RedemptionService(db).update_status(redemption.id, RedemptionStatus.REJECTED, actor_of(world.admin))
    entry = await TransactionService(db).create_transaction(
        actor_of(world.admin), world.manager.id, 5, TransactionType.EARN, "thanks"
    )

    logs = await AuditService(db).list_logs(world.acme.id)
    actions = [log.action for log in logs["items"]]
    assert sorted(actions) == ["redemption.create", "redemption.reject", "transaction.create"]

    reject_log = next(log for log in logs["items"] if log.action == "redemption.reject")
    assert reject_log.actor_id == world.admin.id
    assert reject_log.entity_id == str(redemption.id)
    assert reject_log.details["refund_coins"] == 150

    by_entity = await AuditService(db).list_logs(world.acme.id, entity="transaction", entity_id=str(entry.id))
    assert by_entity["total"] == 1

    assert (await AuditService(db).list_logs(world.globex.id))["total"] == 0


@pytest.mark.asyncio
async def test_audit_failure_does_not_undo_the_action(db, world, monkeypatch, caplog):
    class BrokenSession(AsyncSession):
        async def commit(self):
            raise RuntimeError("audit store down")

    service = TransactionService(db)
    monkeypatch.setattr("app.services.audit_service.AsyncSession", BrokenSession)

    entry = await service.create_transaction(
        actor_of(world.admin), world.manager.id, 25, TransactionType.EARN, "still counts"
    )
    monkeypatch.undo()

    assert entry.amount == 25
    assert "Failed to write audit log" in caplog.text
    assert await db.scalar(select(AuditLog.id)) is None
    assert await service.balance.get_balance(world.manager.id) == 25
