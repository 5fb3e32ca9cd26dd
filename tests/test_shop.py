import uuid

import pytest

from app.api.v1.shop.services import ShopService, SHOP_ITEM_ENTITY
from app.core.exceptions import NotFoundException, ForbiddenException, ValidationException
from app.services.audit_service import AuditService
from tests.conftest import actor_of, auth_header


@pytest.mark.asyncio
async def test_admin_creates_and_updates_items(db, world):
    service = ShopService(db)
    admin = actor_of(world.admin)

    item = await service.create_item(admin, title="  Hoodie ", price_coins=300, stock=4)
    assert item.title == "Hoodie"
    assert item.company_id == world.acme.id
    assert item.is_active is True

    updated = await service.update_item(item.id, admin, price_coins=250, is_active=False)
    assert updated.price_coins == 250
    assert updated.is_active is False

    logs = await AuditService(db).list_logs(world.acme.id, entity=SHOP_ITEM_ENTITY)
    assert [log.action for log in logs["items"]] == ["shop_item.update", "shop_item.create"]
    assert logs["items"][0].details["before"]["price_coins"] == 300


@pytest.mark.asyncio
async def test_item_values_are_validated(db, world):
    service = ShopService(db)
    admin = actor_of(world.admin)

    with pytest.raises(ValidationException):
        await service.create_item(admin, title="Free lunch", price_coins=0)
    with pytest.raises(ValidationException):
        await service.create_item(admin, title=" ", price_coins=10)
    with pytest.raises(ValidationException):
        await service.update_item(world.mug.id, admin, price_coins=-1)
    with pytest.raises(ValidationException):
        await service.update_item(world.mug.id, admin, stock=-3)
    with pytest.raises(ValidationException):
        await service.update_item(world.mug.id, admin, company_id=world.globex.id)

    mug = await service.get_item(world.mug.id, admin)
    assert mug.price_coins == 150


@pytest.mark.asyncio
async def test_only_admins_manage_the_catalog(db, world):
    service = ShopService(db)

    with pytest.raises(ForbiddenException):
        await service.create_item(actor_of(world.rop), title="Cap", price_coins=20)
    with pytest.raises(ForbiddenException):
        await service.update_item(world.mug.id, actor_of(world.manager), price_coins=1)
    with pytest.raises(NotFoundException):
        await service.update_item(world.mug.id, actor_of(world.other_admin), price_coins=1)


@pytest.mark.asyncio
async def test_item_visibility(db, world):
    service = ShopService(db)

    assert (await service.get_item(world.mug.id, actor_of(world.manager))).title == "Mug"
    with pytest.raises(NotFoundException):
        await service.get_item(world.retired.id, actor_of(world.manager))
    with pytest.raises(NotFoundException):
        await service.get_item(world.foreign.id, actor_of(world.admin))
    with pytest.raises(NotFoundException):
        await service.get_item(uuid.uuid4(), actor_of(world.admin))

    assert (await service.get_item(world.retired.id, actor_of(world.admin))).is_active is False

    listed = await service.list_items(actor_of(world.admin), include_inactive=True)
    assert [item.title for item in listed] == ["Old hoodie", "Mug"]
    listed = await service.list_items(actor_of(world.manager), include_inactive=True)
    assert [item.title for item in listed] == ["Mug"]


@pytest.mark.asyncio
async def test_catalog_endpoints(client, world):
    admin = auth_header(world.admin)

    created = await client.post(
        "/api/v1/shop", json={"title": "Sticker", "price_coins": 5, "stock": 100}, headers=admin
    )
    assert created.status_code == 201
    item_id = created.json()["id"]

    fetched = await client.get(f"/api/v1/shop/{item_id}", headers=auth_header(world.manager))
    assert fetched.status_code == 200
    assert fetched.json()["price_coins"] == 5

    patched = await client.patch(f"/api/v1/shop/{item_id}", json={"price_coins": 7}, headers=admin)
    assert patched.status_code == 200
    assert patched.json()["price_coins"] == 7
    assert patched.json()["stock"] == 100

    free = await client.post("/api/v1/shop", json={"title": "Gift", "price_coins": 0}, headers=admin)
    assert free.status_code == 422

    empty = await client.patch(f"/api/v1/shop/{item_id}", json={}, headers=admin)
    assert empty.status_code == 422

    by_rop = await client.post(
        "/api/v1/shop", json={"title": "Cap", "price_coins": 20}, headers=auth_header(world.rop)
    )
    assert by_rop.status_code == 403

    foreign = await client.get(f"/api/v1/shop/{item_id}", headers=auth_header(world.other_manager))
    assert foreign.status_code == 404
