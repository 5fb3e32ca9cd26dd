"""API v1 routes aggregation"""

from fastapi import APIRouter

from .auth.router import router as auth_router
from .balance.router import router as balance_router
from .transactions.router import router as transactions_router
from .shop.router import router as shop_router
from .redemptions.router import router as redemptions_router
from .invites.router import router as invites_router
from .audit.router import router as audit_router
from .users.router import router as users_router, teams_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(balance_router, prefix="/balance", tags=["Balance"])
api_router.include_router(transactions_router, prefix="/transactions", tags=["Transactions"])
api_router.include_router(shop_router, prefix="/shop", tags=["Shop"])
api_router.include_router(redemptions_router, prefix="/redemptions", tags=["Redemptions"])
api_router.include_router(invites_router, prefix="/invites", tags=["Invites"])
api_router.include_router(audit_router, prefix="/audit-logs", tags=["Audit"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(teams_router, prefix="/teams", tags=["Teams"])

# Export router
router = api_router
