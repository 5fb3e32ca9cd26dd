from types import SimpleNamespace

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import build_engine, build_session_factory, get_db
from app.core.security import Actor, SecurityUtils
from app.main import app
from app.models import (
    Base, Company, Team, User, UserRole, ShopItem,
    TransactionType, TransactionStatus
)
from app.services.ledger import LedgerStore

PASSWORD = "secret"


def actor_of(user: User) -> Actor:
    return Actor(id=user.id, role=user.role, company_id=user.company_id, team_id=user.team_id)


def auth_header(user: User) -> dict:
    return {"Authorization": f"Bearer {SecurityUtils.create_access_token(actor_of(user))}"}


async def credit(db: AsyncSession, user: User, amount: int, reason: str = "seed") -> None:
    """Give a user an approved balance directly through the ledger"""
    await LedgerStore(db).append(
        user_id=user.id,
        company_id=user.company_id,
        type=TransactionType.EARN,
        amount=amount,
        reason=reason,
        status=TransactionStatus.APPROVED,
        created_by_id=None,
    )
    await db.commit()


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_path = tmp_path / "rewards.db"
    engine = build_engine(f"sqlite+aiosqlite:///{db_path}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def world(session_maker):
    """
    Two companies. Acme has an admin, a team lead with one manager in their
    team and a second manager in another team; Globex has an admin and a
    manager.

    Seeded through its own session, so the returned rows stay readable after
    a test session rolls back.
    """
    async with session_maker() as db:
        return await _seed(db)


async def _seed(db):
    password_hash = SecurityUtils.hash_password(PASSWORD)

    acme = Company(name="Acme", subdomain="acme")
    globex = Company(name="Globex", subdomain="globex")
    db.add_all([acme, globex])
    await db.flush()

    sales = Team(name="Sales", company_id=acme.id)
    support = Team(name="Support", company_id=acme.id)
    db.add_all([sales, support])
    await db.flush()

    def user(username, role, company, team=None):
        return User(
            username=username,
            password_hash=password_hash,
            name=username.title(),
            role=role,
            company_id=company.id,
            team_id=team.id if team else None,
        )

    admin = user("admin", UserRole.ADMIN, acme)
    rop = user("rop", UserRole.ROP, acme, sales)
    manager = user("manager", UserRole.MANAGER, acme, sales)
    outsider = user("outsider", UserRole.MANAGER, acme, support)
    other_admin = user("globex-admin", UserRole.ADMIN, globex)
    other_manager = user("globex-manager", UserRole.MANAGER, globex)
    db.add_all([admin, rop, manager, outsider, other_admin, other_manager])
    await db.flush()
    sales.rop_user_id = rop.id

    mug = ShopItem(title="Mug", description="Branded mug", price_coins=150, stock=10, company_id=acme.id)
    retired = ShopItem(title="Old hoodie", price_coins=50, stock=0, is_active=False, company_id=acme.id)
    foreign = ShopItem(title="Globex pen", price_coins=10, stock=5, company_id=globex.id)
    db.add_all([mug, retired, foreign])
    await db.commit()

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        sales=sales,
        support=support,
        admin=admin,
        rop=rop,
        manager=manager,
        outsider=outsider,
        other_admin=other_admin,
        other_manager=other_manager,
        mug=mug,
        retired=retired,
        foreign=foreign,
    )


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
